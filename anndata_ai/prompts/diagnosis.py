from __future__ import annotations

from typing import List

from langchain_core.prompts import PromptTemplate

from ..schemas import DiseaseDetectionRequest, PestOutbreakRequest
from .common import (
    DEFAULT_PREVIOUS_TREATMENTS,
    DEFAULT_WEATHER,
    field_lines,
    json_shape_instruction,
    numbered_sections,
    render,
    row,
)


DISEASE_SECTIONS = [
    "PRIMARY DISEASE IDENTIFICATION (with confidence %)",
    "SECONDARY POSSIBLE DISEASES (differential diagnosis)",
    "DISEASE SEVERITY ASSESSMENT (mild/moderate/severe)",
    "IMMEDIATE TREATMENT PROTOCOL (step-by-step)",
    "ORGANIC TREATMENT ALTERNATIVES",
    "PREVENTIVE MEASURES (future protection)",
    "RECOVERY TIMELINE (expected duration)",
    "ECONOMIC IMPACT ASSESSMENT",
    "MONITORING GUIDELINES (what to watch for)",
]
DISEASE_IMAGE_SECTION = "IMAGE-BASED VISUAL CONFIRMATION (what the images reveal)"
DISEASE_IMAGE_NOTES = (
    "Analyze the uploaded plant images for visual disease symptoms (spots, "
    "discoloration, wilting, lesions), affected plant parts and severity."
)
DISEASE_SHAPE = {
    "disease": "name of the most likely disease",
    "confidence": "diagnostic confidence, 0-100",
    "differential_diagnosis": "list of other possible diseases",
    "severity": "mild, moderate or severe",
    "treatment": "list of immediate treatment steps",
    "organic_alternatives": "list of organic treatments",
    "prevention": "list of preventive measures",
    "recovery_timeline": "expected recovery duration",
    "economic_impact": "expected loss if untreated",
    "monitoring": "what to watch for next",
}
DISEASE_TEMPLATE = PromptTemplate.from_template(
    "PLANT DISEASE DIAGNOSIS & TREATMENT ANALYSIS\n\n"
    "CROP INFORMATION:\n{crop}\n\n"
    "{image_notes}"
    "REQUIRED DIAGNOSIS:\n{sections}\n\n"
    "Provide specific diagnostic confidence scores (0-100%) and detailed "
    "treatment protocols. Include both chemical and organic treatment options "
    "with application schedules.\n\n"
    "{output_format}"
)

PEST_SECTIONS = [
    "PRIMARY PEST IDENTIFICATION (with confidence %)",
    "PEST LIFE CYCLE STAGE (egg, larva, adult, etc.)",
    "DAMAGE SEVERITY ASSESSMENT (low/moderate/high/severe)",
    "IMMEDIATE CONTROL MEASURES (emergency treatment)",
    "INTEGRATED PEST MANAGEMENT (IPM) STRATEGY",
    "BIOLOGICAL CONTROL OPTIONS (natural predators, parasites)",
    "CHEMICAL CONTROL (if necessary, specific products)",
    "ORGANIC/NATURAL TREATMENT ALTERNATIVES",
    "PREVENTION STRATEGIES (future outbreak prevention)",
    "MONITORING SCHEDULE (when to check again)",
    "ECONOMIC THRESHOLD ANALYSIS (treatment cost vs. damage)",
    "RESISTANCE MANAGEMENT (avoiding pesticide resistance)",
]
PEST_IMAGE_SECTION = "VISUAL PEST CONFIRMATION (what the images show)"
PEST_IMAGE_NOTES = (
    "Analyze the uploaded images for visible pests (insects, larvae, eggs), "
    "damage patterns (chewed leaves, holes, feeding marks) and secondary signs "
    "(honeydew, webbing, frass)."
)
PEST_SHAPE = {
    "pest": "name of the most likely pest",
    "confidence": "identification confidence, 0-100",
    "life_cycle_stage": "egg, larva, nymph or adult",
    "severity": "low, moderate, high or severe",
    "immediate_control": "list of emergency measures",
    "ipm_strategy": "integrated pest management plan",
    "biological_control": "list of natural enemies to use",
    "chemical_control": "specific products, only if necessary",
    "organic_alternatives": "list of organic treatments",
    "prevention": "list of preventive measures",
    "monitoring": "when and what to check again",
}
PEST_TEMPLATE = PromptTemplate.from_template(
    "PEST OUTBREAK IDENTIFICATION & MANAGEMENT ANALYSIS\n\n"
    "CROP INFORMATION:\n{crop}\n\n"
    "{image_notes}"
    "REQUIRED PEST ANALYSIS:\n{sections}\n\n"
    "Provide specific pest identification with confidence scores (0-100%) and "
    "detailed integrated pest management protocols. Include both immediate "
    "action and long-term prevention strategies.\n\n"
    "{output_format}"
)


def _image_notes(request: DiseaseDetectionRequest, notes: str) -> str:
    if not request.has_images:
        return ""
    return (
        f"IMAGES PROVIDED: {len(request.images)}\n{notes}\n"
        "Correlate visual evidence from the images with the described "
        "symptoms.\n\n"
    )


def _sections(base: List[str], image_section: str, has_images: bool) -> str:
    sections = list(base)
    if has_images:
        sections.append(image_section)
    return numbered_sections(sections)


def build_disease_detection_prompt(request: DiseaseDetectionRequest) -> str:
    crop = field_lines(
        [
            row("Crop Type", request.crop_type),
            row("Observed Symptoms", request.symptoms),
            row("Affected Area", request.affected_area),
            row("Severity Level", request.severity),
            row("Location", request.location),
            row("Weather Conditions", request.weather_conditions, DEFAULT_WEATHER),
        ]
    )
    return render(
        DISEASE_TEMPLATE,
        crop=crop,
        image_notes=_image_notes(request, DISEASE_IMAGE_NOTES),
        sections=_sections(DISEASE_SECTIONS, DISEASE_IMAGE_SECTION, request.has_images),
        output_format=json_shape_instruction(DISEASE_SHAPE),
    )


def build_pest_outbreak_prompt(request: PestOutbreakRequest) -> str:
    crop = field_lines(
        [
            row("Crop Type", request.crop_type),
            row("Pest Symptoms & Damage", request.symptoms),
            row("Suspected Pest", request.pest_type),
            row("Damage Level", request.damage_level),
            row("Infestation Stage", request.infestation_stage),
            row("Affected Area", request.affected_area),
            row("Severity Level", request.severity),
            row("Location", request.location),
            row("Weather Conditions", request.weather_conditions, DEFAULT_WEATHER),
            row(
                "Previous Treatments",
                request.previous_treatments,
                DEFAULT_PREVIOUS_TREATMENTS,
            ),
        ]
    )
    return render(
        PEST_TEMPLATE,
        crop=crop,
        image_notes=_image_notes(request, PEST_IMAGE_NOTES),
        sections=_sections(PEST_SECTIONS, PEST_IMAGE_SECTION, request.has_images),
        output_format=json_shape_instruction(PEST_SHAPE),
    )
