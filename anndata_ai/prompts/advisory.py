from __future__ import annotations

from langchain_core.prompts import PromptTemplate

from ..schemas import (
    ChatRequest,
    FarmerEducationRequest,
    GovernmentSchemesRequest,
    LoanRecommendationRequest,
    MarketAnalysisRequest,
)
from .common import (
    DEFAULT_CHAT_CONTEXT,
    DEFAULT_CURRENT_PRICE,
    DEFAULT_EDUCATION_TOPIC,
    DEFAULT_EQUIPMENT,
    DEFAULT_EXPERIENCE_LEVEL,
    DEFAULT_FARM_SCALE,
    DEFAULT_FARMER_CATEGORY,
    DEFAULT_LANGUAGE,
    DEFAULT_LEARNING_GOALS,
    DEFAULT_MARKET_SEASON,
    DEFAULT_PRIMARY_CROP,
    DEFAULT_REGION,
    field_lines,
    format_value,
    json_shape_instruction,
    numbered_sections,
    render,
    row,
)


MARKET_SECTIONS = [
    "PRICE TREND ANALYSIS (historical patterns, seasonal variations)",
    "DEMAND-SUPPLY DYNAMICS (current market conditions)",
    "OPTIMAL SELLING STRATEGY (timing recommendations)",
    "STORAGE VS IMMEDIATE SALE (profitability comparison)",
    "ALTERNATIVE MARKET CHANNELS (direct sales, cooperatives, online)",
    "VALUE ADDITION OPPORTUNITIES (processing, branding)",
    "PRICE RISK MITIGATION (hedging strategies)",
    "COMPETITIVE ANALYSIS (local vs. regional pricing)",
    "PROFIT MAXIMIZATION RECOMMENDATIONS (cost optimization)",
]
MARKET_SHAPE = {
    "price_trend": "rising, stable or falling, with explanation",
    "expected_price_range": "expected price range per kg",
    "demand_supply": "current demand and supply situation",
    "selling_strategy": "when and where to sell",
    "storage_advice": "store or sell immediately, with reason",
    "market_channels": "list of alternative channels",
    "risks": "price risks and mitigation",
    "confidence": "confidence in the analysis, 0-100",
}
MARKET_TEMPLATE = PromptTemplate.from_template(
    "AGRICULTURAL MARKET INTELLIGENCE & PRICING STRATEGY\n\n"
    "MARKET PARAMETERS:\n{parameters}\n\n"
    "MARKET ANALYSIS REQUIREMENTS:\n{sections}\n\n"
    "Provide specific pricing strategies, market timing advice and actionable "
    "recommendations for maximizing farmer profits.\n\n"
    "{output_format}"
)


def build_market_analysis_prompt(request: MarketAnalysisRequest) -> str:
    price = (
        f"₹{format_value(request.current_price)} per kg"
        if request.current_price is not None
        else DEFAULT_CURRENT_PRICE
    )
    parameters = field_lines(
        [
            row("Crop/Product", request.crop_type),
            row("Region", request.region, DEFAULT_REGION),
            row("Current Price", price),
            row("Season", request.season, DEFAULT_MARKET_SEASON),
        ]
    )
    return render(
        MARKET_TEMPLATE,
        parameters=parameters,
        sections=numbered_sections(MARKET_SECTIONS),
        output_format=json_shape_instruction(MARKET_SHAPE),
    )


CHAT_SHAPE = {
    "advice": "a concise, actionable recommendation",
    "confidence_score": "confidence in this recommendation, 0-100",
    "explanation": "why this advice is recommended",
    "additional_considerations": "other factors the farmer should weigh",
}
CHAT_EXPERTISE = [
    "Crop selection and rotation planning",
    "Soil health and fertilizer optimization",
    "Pest and disease diagnosis",
    "Weather impact analysis",
    "Sustainable farming practices",
    "Market trends and profitability",
    "Irrigation and water management",
    "Organic farming techniques",
]
CHAT_TEMPLATE = PromptTemplate.from_template(
    "You are AgriBot, an AI farming assistant. You give practical agricultural "
    "guidance to farmers.\n\n"
    "EXPERTISE AREAS:\n{expertise}\n\n"
    "CURRENT CONTEXT: {context}\n\n"
    "USER QUERY: {message}\n\n"
    "RESPONSE GUIDELINES:\n"
    "- Provide specific, actionable advice\n"
    "- Consider local and regional factors when possible\n"
    "- Offer both immediate and long-term solutions\n"
    "- Maintain a helpful, professional tone\n\n"
    "{output_format}"
)


def build_chat_prompt(request: ChatRequest) -> str:
    return render(
        CHAT_TEMPLATE,
        expertise="\n".join(f"- {item}" for item in CHAT_EXPERTISE),
        context=format_value(request.context, DEFAULT_CHAT_CONTEXT),
        message=request.message,
        output_format=json_shape_instruction(CHAT_SHAPE),
    )


LOAN_SECTIONS = [
    "Loan Amount Recommendation (with justification)",
    "Interest Rate Range",
    "Repayment Terms",
    "Risk Assessment",
    "Required Documentation",
    "Alternative Financing Options",
    "Specific Lender Suggestions",
]
LOAN_TEMPLATE = PromptTemplate.from_template(
    "As an agricultural finance expert, analyze the following farmer profile "
    "and provide detailed loan recommendations.\n\n"
    "Farmer Profile:\n{profile}\n\n"
    "Please provide:\n{sections}\n\n"
    "Format the response as a structured recommendation."
)


def build_loan_recommendation_prompt(request: LoanRecommendationRequest) -> str:
    profile = field_lines(
        [
            row("Farm Size", request.farm_size, unit=" acres"),
            row("Annual Income", request.income),
            row("Credit Score", request.credit_score, "Not provided"),
            row("Loan Purpose", request.loan_purpose),
            row("Collateral", request.collateral),
            row("Farming Experience", request.farming_experience, unit=" years"),
            row("Primary Crop", request.crop_type, DEFAULT_PRIMARY_CROP),
            row("Location", request.location),
        ]
    )
    return render(
        LOAN_TEMPLATE, profile=profile, sections=numbered_sections(LOAN_SECTIONS)
    )


SCHEME_SECTIONS = [
    "Central Government Schemes (with eligibility criteria)",
    "State-specific Programs",
    "Subsidies Available",
    "Equipment Purchase Schemes",
    "Crop Insurance Options",
    "Training and Development Programs",
    "Application Process and Documentation",
    "Deadlines and Important Dates",
]
SCHEME_TEMPLATE = PromptTemplate.from_template(
    "As an agricultural policy expert, analyze the following farmer profile "
    "and recommend relevant government schemes and subsidies.\n\n"
    "Farmer Profile:\n{profile}\n\n"
    "Please provide:\n{sections}\n\n"
    "Format the response with clear scheme names, benefits and eligibility "
    "requirements."
)


def build_government_schemes_prompt(request: GovernmentSchemesRequest) -> str:
    profile = field_lines(
        [
            row("Farm Size", request.farm_size, unit=" acres"),
            row("Primary Crop", request.crop_type, DEFAULT_PRIMARY_CROP),
            row("Location", request.location),
            row("Farmer Category", request.farmer_category, DEFAULT_FARMER_CATEGORY),
            row("Annual Income", request.income),
            row("Age", request.age),
            row("Current Equipment", request.equipment, DEFAULT_EQUIPMENT),
        ]
    )
    return render(
        SCHEME_TEMPLATE, profile=profile, sections=numbered_sections(SCHEME_SECTIONS)
    )


EDUCATION_SECTIONS = [
    "Learning Path Overview",
    "Key Topics and Modules",
    "Best Practices and Techniques",
    "Common Mistakes to Avoid",
    "Practical Implementation Steps",
    "Resource Recommendations (books, videos, courses)",
    "Expert Tips and Insights",
    "Success Stories and Case Studies",
]
EDUCATION_TEMPLATE = PromptTemplate.from_template(
    "As an agricultural education expert, create a comprehensive learning "
    'program for farmers on "{topic}".\n\n'
    "Learning Context:\n{learning_context}\n\n"
    "Please provide:\n{sections}\n\n"
    "Format the response as a structured educational program with clear "
    "learning objectives."
)


def build_farmer_education_prompt(request: FarmerEducationRequest) -> str:
    learning_context = field_lines(
        [
            row("Experience Level", request.experience_level, DEFAULT_EXPERIENCE_LEVEL),
            row("Primary Crop", request.crop_type, DEFAULT_PRIMARY_CROP),
            row("Farm Size", request.farm_size, DEFAULT_FARM_SCALE),
            row("Region", request.region, "General"),
            row("Preferred Language", request.language, DEFAULT_LANGUAGE),
            row("Learning Goals", request.learning_goals, DEFAULT_LEARNING_GOALS),
        ]
    )
    return render(
        EDUCATION_TEMPLATE,
        topic=format_value(request.topic, DEFAULT_EDUCATION_TOPIC),
        learning_context=learning_context,
        sections=numbered_sections(EDUCATION_SECTIONS),
    )
