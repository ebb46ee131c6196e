from __future__ import annotations

from langchain_core.prompts import PromptTemplate

from ..schemas import (
    CropRecommendationRequest,
    CropSwappingRequest,
    FertilizerRecommendationRequest,
    GeospatialAnalysisRequest,
    IrrigationRequirementRequest,
    SoilReportRequest,
    YieldPredictionRequest,
)
from .common import (
    DEFAULT_AREA,
    DEFAULT_CLIMATE,
    DEFAULT_CROP,
    DEFAULT_DISTRICT,
    DEFAULT_IRRIGATION_TYPE,
    DEFAULT_RISK_TOLERANCE,
    DEFAULT_SEASON,
    DEFAULT_SOIL_TYPE,
    DEFAULT_STATE,
    DEFAULT_SUSTAINABILITY_GOALS,
    DEFAULT_WEATHER,
    DEFAULT_YEAR,
    extra_lines,
    field_lines,
    format_value,
    json_shape_instruction,
    numbered_sections,
    render,
    row,
)


CROP_RECOMMENDATION_SECTIONS = [
    "Top 3 recommended crops with specific varieties",
    "Expected yield per hectare for each crop",
    "Basic fertilizer requirements (NPK recommendations)",
    "Water requirements and irrigation schedule",
    "Planting and harvesting timeline",
    "Potential risks and mitigation strategies",
]
CROP_RECOMMENDATION_SHAPE = {
    "recommended_crops": "list of the top 3 crop names, each with a variety",
    "expected_yield": "expected yield per hectare for each crop",
    "fertilizer_requirements": "NPK recommendation",
    "water_requirements": "water needs and irrigation schedule",
    "timeline": "planting and harvesting timeline",
    "risks": "main risks and how to mitigate them",
    "confidence": "confidence in the recommendation, 0-100",
}
CROP_RECOMMENDATION_TEMPLATE = PromptTemplate.from_template(
    "You are an agricultural expert. Based on the following soil and "
    "environmental data, recommend the best crops for cultivation.\n\n"
    "Soil Analysis:\n{soil}\n\n"
    "Environmental Conditions:\n{environment}\n\n"
    "Please provide:\n{sections}\n\n"
    "{output_format}"
)


def build_crop_recommendation_prompt(request: CropRecommendationRequest) -> str:
    location = (
        f"{format_value(request.state, DEFAULT_STATE)}, "
        f"{format_value(request.district, DEFAULT_DISTRICT)}"
    )
    soil = field_lines(
        [
            row("Nitrogen", request.nitrogen, unit=" ppm"),
            row("Phosphorus", request.phosphorus, unit=" ppm"),
            row("Potassium", request.potassium, unit=" ppm"),
            row("pH Level", request.ph),
        ]
    )
    environment = field_lines(
        [
            row("Temperature", request.temperature, unit="°C"),
            row("Humidity", request.humidity, unit="%"),
            row("Rainfall", request.rainfall, unit=" mm"),
            row("Location", location),
            row("Soil Type", request.soil_type, DEFAULT_SOIL_TYPE),
            row("Climate", request.climate, DEFAULT_CLIMATE),
            row("Area", request.area, DEFAULT_AREA),
            row("Season", request.season, DEFAULT_SEASON),
        ]
    )
    return render(
        CROP_RECOMMENDATION_TEMPLATE,
        soil=soil,
        environment=environment,
        sections=numbered_sections(CROP_RECOMMENDATION_SECTIONS),
        output_format=json_shape_instruction(CROP_RECOMMENDATION_SHAPE),
    )


YIELD_PREDICTION_SECTIONS = [
    "YIELD ESTIMATION (per hectare with confidence %)",
    "TOTAL PRODUCTION FORECAST (for entire area)",
    "QUALITY GRADE PREDICTION (Grade A/B/C with percentages)",
    "YIELD INFLUENCING FACTORS (ranked by impact)",
    "OPTIMIZATION STRATEGIES (to maximize yield)",
    "RISK FACTORS & MITIGATION (weather, pests, market)",
    "COMPARATIVE ANALYSIS (vs. regional averages)",
    "PROFIT MARGIN ESTIMATION (cost vs. revenue)",
    "HARVEST TIMING RECOMMENDATIONS (optimal windows)",
]
YIELD_PREDICTION_SHAPE = {
    "yield_per_hectare": "estimated yield per hectare with unit",
    "total_production": "forecast for the entire area",
    "quality_grade": "expected grade distribution",
    "influencing_factors": "list of factors ranked by impact",
    "optimization_strategies": "list of ways to raise the yield",
    "risks": "main risks and mitigation",
    "scenarios": "best-case, most-likely and worst-case estimates",
    "harvest_window": "recommended harvest timing",
    "confidence": "confidence in the estimate, 0-100",
}
YIELD_PREDICTION_TEMPLATE = PromptTemplate.from_template(
    "CROP YIELD PREDICTION & OPTIMIZATION ANALYSIS\n\n"
    "CULTIVATION PARAMETERS:\n{parameters}\n\n"
    "PREDICTION REQUIREMENTS:\n{sections}\n\n"
    "Provide specific numerical estimates with confidence intervals and "
    "practical optimization recommendations. Include best-case, most-likely "
    "and worst-case scenarios.\n\n"
    "{output_format}"
)


def build_yield_prediction_prompt(request: YieldPredictionRequest) -> str:
    parameters = field_lines(
        [
            row("Crop Type", request.crop_type),
            row("Cultivation Area", request.area, unit=" hectares"),
            row("Growing Season", request.season, DEFAULT_SEASON),
            row("Soil Type", request.soil_type, DEFAULT_SOIL_TYPE),
            row("Irrigation System", request.irrigation_type, DEFAULT_IRRIGATION_TYPE),
            row("Expected Rainfall", request.rainfall, unit=" mm"),
            row("Average Temperature", request.temperature, unit="°C"),
        ]
    )
    return render(
        YIELD_PREDICTION_TEMPLATE,
        parameters=parameters,
        sections=numbered_sections(YIELD_PREDICTION_SECTIONS),
        output_format=json_shape_instruction(YIELD_PREDICTION_SHAPE),
    )


FERTILIZER_SECTIONS = [
    "NPK RATIO CALCULATION (optimal for soil conditions)",
    "ORGANIC FERTILIZER OPTIONS (compost, manure, bio-fertilizers)",
    "CHEMICAL FERTILIZER ALTERNATIVES (specific products)",
    "APPLICATION SCHEDULE (timing and frequency)",
    "DOSAGE RECOMMENDATIONS (per hectare)",
    "COST-BENEFIT ANALYSIS (ROI calculations)",
    "SOIL IMPROVEMENT STRATEGIES (long-term health)",
    "MICRO-NUTRIENT SUPPLEMENTS (if needed)",
    "SEASONAL ADJUSTMENT PROTOCOLS",
]
FERTILIZER_SHAPE = {
    "npk_ratio": "recommended N:P:K ratio",
    "organic_options": "list of organic fertilizers",
    "chemical_options": "list of chemical fertilizer products",
    "application_schedule": "timing and frequency",
    "dosage_per_hectare": "quantities per hectare",
    "cost_benefit": "expected cost and return",
    "micronutrients": "micro-nutrient supplements, if any",
    "confidence": "confidence in the recommendation, 0-100",
}
FERTILIZER_TEMPLATE = PromptTemplate.from_template(
    "FERTILIZER OPTIMIZATION & SOIL NUTRITION ANALYSIS\n\n"
    "SOIL ANALYSIS DATA:\n{soil}\n\n"
    "FERTILIZER RECOMMENDATIONS REQUIRED:\n{sections}\n\n"
    "Provide specific fertilizer formulations, application rates and timing "
    "schedules. Include both budget-friendly and premium options with "
    "expected results.\n\n"
    "{output_format}"
)


def build_fertilizer_recommendation_prompt(
    request: FertilizerRecommendationRequest,
) -> str:
    soil = field_lines(
        [
            row("Nitrogen (N)", request.nitrogen, unit=" ppm"),
            row("Phosphorus (P)", request.phosphorus, unit=" ppm"),
            row("Potassium (K)", request.potassium, unit=" ppm"),
            row("pH Level", request.ph),
            row("Organic Matter", request.organic_matter, unit="%"),
            row("Soil Type", request.soil_type, DEFAULT_SOIL_TYPE),
            row("Crop Type", request.crop_type, DEFAULT_CROP),
        ]
    )
    additional = extra_lines(request.model_extra)
    if additional:
        soil = f"{soil}\n{additional}"
    return render(
        FERTILIZER_TEMPLATE,
        soil=soil,
        sections=numbered_sections(FERTILIZER_SECTIONS),
        output_format=json_shape_instruction(FERTILIZER_SHAPE),
    )


IRRIGATION_SECTIONS = [
    "DAILY WATER REQUIREMENT (liters per hectare)",
    "SEASONAL WATER BUDGET (total requirement)",
    "IRRIGATION SCHEDULING (frequency and timing)",
    "SYSTEM EFFICIENCY RECOMMENDATIONS (drip, sprinkler, flood)",
    "WATER CONSERVATION STRATEGIES (mulching, cover crops)",
    "COST OPTIMIZATION ANALYSIS (infrastructure vs. operating costs)",
    "DROUGHT CONTINGENCY PLANNING (water scarcity protocols)",
    "SMART IRRIGATION INTEGRATION (sensors, automation)",
    "WATER QUALITY CONSIDERATIONS (salinity, pH, nutrients)",
]
IRRIGATION_SHAPE = {
    "daily_water_requirement": "liters per hectare per day",
    "seasonal_water_budget": "total requirement for the season",
    "schedule": "irrigation frequency and timing",
    "recommended_system": "drip, sprinkler or flood, with reason",
    "conservation_strategies": "list of water saving measures",
    "drought_plan": "what to do under water scarcity",
    "confidence": "confidence in the estimate, 0-100",
}
IRRIGATION_TEMPLATE = PromptTemplate.from_template(
    "IRRIGATION WATER MANAGEMENT & EFFICIENCY ANALYSIS\n\n"
    "CROP & CULTIVATION DATA:\n{crop}\n\n"
    "IRRIGATION ANALYSIS REQUIREMENTS:\n{sections}\n\n"
    "Provide specific calculations, schedules and cost-effective irrigation "
    "strategies.\n\n"
    "{output_format}"
)


def build_irrigation_requirement_prompt(
    request: IrrigationRequirementRequest,
) -> str:
    crop = field_lines(
        [
            row("Crop Type", request.crop_type),
            row("Growth Stage", request.growth_stage),
            row("Soil Type", request.soil_type, DEFAULT_SOIL_TYPE),
            row("Cultivation Area", request.area, DEFAULT_AREA, unit=" hectares"),
            row("Weather", request.weather, DEFAULT_WEATHER),
        ]
    )
    return render(
        IRRIGATION_TEMPLATE,
        crop=crop,
        sections=numbered_sections(IRRIGATION_SECTIONS),
        output_format=json_shape_instruction(IRRIGATION_SHAPE),
    )


GEOSPATIAL_SECTIONS = [
    "SOIL QUALITY MAPPING (for the district)",
    "CLIMATE SUITABILITY ASSESSMENT (temperature, rainfall patterns)",
    "TOPOGRAPHICAL IMPACT ANALYSIS (slope, drainage, elevation effects)",
    "WATER RESOURCE AVAILABILITY (groundwater, surface water access)",
    "RISK ZONE IDENTIFICATION (flood-prone, drought-prone areas)",
    "OPTIMAL CULTIVATION ZONES (within the region)",
    "YIELD POTENTIAL MAPPING (based on location factors)",
    "INFRASTRUCTURE ACCESSIBILITY (roads, markets, storage)",
    "COMPARATIVE REGIONAL ANALYSIS (vs. similar locations)",
]
GEOSPATIAL_SHAPE = {
    "suitability": "overall suitability of the location for the crop",
    "soil_quality": "soil quality summary",
    "climate": "climate suitability summary",
    "water_resources": "water availability summary",
    "risk_zones": "list of location-based risks",
    "yield_potential": "expected yield potential",
    "recommendations": "list of location-specific recommendations",
    "confidence": "confidence in the analysis, 0-100",
}
GEOSPATIAL_TEMPLATE = PromptTemplate.from_template(
    "GEOSPATIAL CROP ANALYSIS & LOCATION INTELLIGENCE\n\n"
    "LOCATION PARAMETERS:\n{location}\n\n"
    "GEOSPATIAL ANALYSIS REQUIREMENTS:\n{sections}\n\n"
    "Provide location-specific insights. Include recommendations for "
    "maximizing the geographic advantages and mitigating location-based "
    "challenges.\n\n"
    "{output_format}"
)


def build_geospatial_analysis_prompt(request: GeospatialAnalysisRequest) -> str:
    location = field_lines(
        [
            row("Target Crop", request.crop_type),
            row("District", request.district),
            row("State", request.state),
            row("Season", request.season, DEFAULT_SEASON),
            row("Year", request.year, DEFAULT_YEAR),
        ]
    )
    return render(
        GEOSPATIAL_TEMPLATE,
        location=location,
        sections=numbered_sections(GEOSPATIAL_SECTIONS),
        output_format=json_shape_instruction(GEOSPATIAL_SHAPE),
    )


SOIL_REPORT_SECTIONS = [
    "SOIL HEALTH SUMMARY (overall condition)",
    "NUTRIENT DEFICIENCIES AND EXCESSES",
    "FERTILIZER PLAN (NPK dosage per hectare)",
    "ORGANIC AMENDMENTS (compost, manure, green manure)",
    "MICRO-NUTRIENT CORRECTIONS",
    "SUITABLE CROPS FOR THIS SOIL",
    "RETESTING SCHEDULE",
]
SOIL_REPORT_SHAPE = {
    "summary": "overall soil condition",
    "deficiencies": "list of nutrient deficiencies",
    "fertilizer_plan": "NPK dosage per hectare",
    "organic_amendments": "list of organic amendments",
    "suitable_crops": "list of crops suited to this soil",
    "retest_after": "when to test again",
    "confidence": "confidence in the interpretation, 0-100",
}
SOIL_REPORT_TEMPLATE = PromptTemplate.from_template(
    "SOIL TEST REPORT INTERPRETATION\n\n"
    "PRIMARY NUTRIENTS:\n{primary}\n\n"
    "SECONDARY AND MICRO NUTRIENTS:\n{secondary}\n\n"
    "REPORT CONTEXT:\n{context}\n\n"
    "ANALYSIS REQUIRED:\n{sections}\n\n"
    "{output_format}"
)


def build_soil_report_prompt(request: SoilReportRequest) -> str:
    primary = field_lines(
        [
            row("Nitrogen (N)", request.nitrogen, unit=" ppm"),
            row("Phosphorus (P)", request.phosphorus, unit=" ppm"),
            row("Potassium (K)", request.potassium, unit=" ppm"),
            row("pH Level", request.ph),
            row("Organic Matter", request.organic_matter, unit="%"),
        ]
    )
    secondary = field_lines(
        [
            row("Calcium", request.calcium, unit=" ppm"),
            row("Magnesium", request.magnesium, unit=" ppm"),
            row("Sulfur", request.sulfur, unit=" ppm"),
            row("Iron", request.iron, unit=" ppm"),
            row("Zinc", request.zinc, unit=" ppm"),
            row("Manganese", request.manganese, unit=" ppm"),
            row("Copper", request.copper, unit=" ppm"),
            row("Boron", request.boron, unit=" ppm"),
            row("Electrical Conductivity", request.electrical_conductivity, unit=" dS/m"),
            row("Cation Exchange Capacity", request.cation_exchange_capacity, unit=" meq/100g"),
            row("Soil Texture", request.soil_texture),
        ]
    )
    context = field_lines(
        [
            row("Crop Type", request.crop_type, DEFAULT_CROP),
            row("Field Location", request.field_location),
            row("Report Date", request.report_date),
            row("Laboratory", request.lab_name),
        ]
    )
    return render(
        SOIL_REPORT_TEMPLATE,
        primary=primary,
        secondary=secondary,
        context=context,
        sections=numbered_sections(SOIL_REPORT_SECTIONS),
        output_format=json_shape_instruction(SOIL_REPORT_SHAPE),
    )


CROP_SWAPPING_SECTIONS = [
    "ALTERNATIVE CROP RECOMMENDATIONS (Top 3):\n"
    "   - Crop name and variety\n"
    "   - Expected yield improvement percentage\n"
    "   - Profitability assessment (High/Medium/Low)\n"
    "   - Implementation difficulty level",
    "ECONOMIC ANALYSIS:\n"
    "   - Investment required for transition\n"
    "   - Expected ROI timeline\n"
    "   - Break-even period\n"
    "   - Profit improvement potential",
    "OPTIMIZATION STRATEGY:\n"
    "   - Crop rotation sequence\n"
    "   - Intercropping opportunities\n"
    "   - Implementation timeline",
    "RISK ASSESSMENT:\n"
    "   - Market risks and mitigation\n"
    "   - Weather dependency factors\n"
    "   - Financial risk management",
    "SUSTAINABILITY IMPACT:\n"
    "   - Soil health improvements\n"
    "   - Water usage efficiency\n"
    "   - Carbon footprint reduction",
    "IMPLEMENTATION ROADMAP:\n"
    "   - Phase 1: Preparation and planning\n"
    "   - Phase 2: Transition and pilot testing\n"
    "   - Phase 3: Full implementation and optimization",
]
CROP_SWAPPING_TEMPLATE = PromptTemplate.from_template(
    "As an expert agricultural strategist, analyze the following farming "
    "scenario and provide a comprehensive crop swapping strategy.\n\n"
    "CURRENT FARMING SITUATION:\n{situation}\n\n"
    "SOIL CONDITIONS:\n{soil}\n\n"
    "MARKET CONDITIONS:\n{market}\n\n"
    "Please provide a structured analysis with:\n\n{sections}\n\n"
    "Provide specific, actionable recommendations with confidence levels for "
    "Indian agricultural conditions."
)


def build_crop_swapping_prompt(request: CropSwappingRequest) -> str:
    situation = field_lines(
        [
            row("Current Crop", request.current_crop),
            row("Current Yield", request.current_yield),
            row("Farm Location", request.farm_location),
            row("Farm Size", request.farm_size),
            row("Season", request.season, DEFAULT_SEASON),
            row("Available Budget", request.available_budget),
            row("Risk Tolerance", request.risk_tolerance, DEFAULT_RISK_TOLERANCE),
            row(
                "Sustainability Goals",
                request.sustainability_goals,
                DEFAULT_SUSTAINABILITY_GOALS,
            ),
        ]
    )
    soil_conditions = request.soil_conditions
    if soil_conditions is None:
        soil = "Standard soil conditions"
    else:
        soil = field_lines(
            [
                row("Nitrogen", soil_conditions.nitrogen, "Unknown", " ppm"),
                row("Phosphorus", soil_conditions.phosphorus, "Unknown", " ppm"),
                row("Potassium", soil_conditions.potassium, "Unknown", " ppm"),
                row("pH Level", soil_conditions.ph, "Unknown"),
                row("Soil Type", soil_conditions.soil_type, "Unknown"),
            ]
        )
    market_conditions = request.market_conditions
    if market_conditions is None:
        market = "Current market conditions"
    else:
        market = field_lines(
            [
                row("Current Price", market_conditions.current_price, "Market rate"),
                row("Demand Trend", market_conditions.demand_trend, "Stable"),
                row("Competition Level", market_conditions.competition, "Medium"),
            ]
        )
    return render(
        CROP_SWAPPING_TEMPLATE,
        situation=situation,
        soil=soil,
        market=market,
        sections=numbered_sections(CROP_SWAPPING_SECTIONS),
    )
