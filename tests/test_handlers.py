import json
import sys
import unittest
from itertools import combinations
from pathlib import Path
from unittest.mock import patch

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))
sys.path.insert(0, str(Path(__file__).resolve().parent))

from fakes import FakeTextClient

from anndata_ai.application.handlers import (
    HANDLER_SPECS,
    find_missing_fields,
    get_handler_spec,
    parse_request,
)
from anndata_ai.application.model_routing import TASK_MODELS
from anndata_ai.application.services import AnalysisService
from anndata_ai.domain.enums import AnalysisKind, InterpretationStrategy
from anndata_ai.domain.errors import UpstreamTimeout, ValidationError


CROP_PAYLOAD = {
    "nitrogen": 40,
    "phosphorus": 20,
    "potassium": 30,
    "temperature": 25,
    "humidity": 60,
    "ph": 6.5,
    "rainfall": 800,
}
CROP_REQUIRED = [
    "nitrogen",
    "phosphorus",
    "potassium",
    "temperature",
    "humidity",
    "ph",
    "rainfall",
]
CROP_COMPLETION = json.dumps(
    {"recommended_crops": ["Rice", "Wheat"], "timeline": "Kharif sowing in June"}
)


class HandlerSpecTests(unittest.TestCase):
    def test_every_kind_has_a_spec(self) -> None:
        for kind in AnalysisKind:
            spec = get_handler_spec(kind)
            self.assertEqual(spec.kind, kind)
            self.assertTrue(spec.route.startswith("/"))

    def test_routes_are_unique(self) -> None:
        routes = [spec.route for spec in HANDLER_SPECS.values()]
        self.assertEqual(len(routes), len(set(routes)))

    def test_crop_required_fields(self) -> None:
        spec = get_handler_spec(AnalysisKind.CROP_RECOMMENDATION)
        self.assertEqual(list(spec.required_fields), CROP_REQUIRED)

    def test_missing_fields_accepts_camel_or_snake_keys(self) -> None:
        spec = get_handler_spec(AnalysisKind.MARKET_ANALYSIS)
        self.assertEqual(
            find_missing_fields(spec, {"cropType": "Onion", "region": "Pune"}), []
        )
        self.assertEqual(
            find_missing_fields(spec, {"crop_type": "Onion", "region": "Pune"}), []
        )
        self.assertEqual(find_missing_fields(spec, {"region": "Pune"}), ["crop_type"])

    def test_blank_camel_key_is_missing_even_with_snake_fallback(self) -> None:
        spec = get_handler_spec(AnalysisKind.DISEASE_DETECTION)
        payload = {"symptoms": "brown spots", "cropType": "", "crop_type": "Rice"}
        self.assertEqual(find_missing_fields(spec, payload), ["crop_type"])
        with self.assertRaises(ValidationError) as ctx:
            parse_request(spec, payload)
        self.assertEqual(ctx.exception.missing_fields, ["crop_type"])

    def test_zero_is_not_missing_but_blank_is(self) -> None:
        spec = get_handler_spec(AnalysisKind.CROP_RECOMMENDATION)
        payload = dict(CROP_PAYLOAD, nitrogen=0, rainfall=0)
        self.assertEqual(find_missing_fields(spec, payload), [])
        payload = dict(CROP_PAYLOAD, nitrogen="", ph=None, humidity="   ")
        self.assertEqual(
            find_missing_fields(spec, payload), ["nitrogen", "humidity", "ph"]
        )

    def test_parse_request_rejects_non_objects(self) -> None:
        spec = get_handler_spec(AnalysisKind.CHAT)
        for payload in ([1, 2], "hello", 42):
            with self.subTest(payload=payload):
                with self.assertRaises(ValidationError):
                    parse_request(spec, payload)

    def test_parse_request_reports_invalid_values(self) -> None:
        spec = get_handler_spec(AnalysisKind.CROP_RECOMMENDATION)
        with self.assertRaises(ValidationError) as ctx:
            parse_request(spec, dict(CROP_PAYLOAD, ph="acidic"))
        self.assertEqual(ctx.exception.missing_fields, [])
        self.assertIn("ph", str(ctx.exception))

    def test_parse_request_rejects_out_of_range_values(self) -> None:
        spec = get_handler_spec(AnalysisKind.CROP_RECOMMENDATION)
        with self.assertRaises(ValidationError):
            parse_request(spec, dict(CROP_PAYLOAD, ph=15))
        with self.assertRaises(ValidationError):
            parse_request(spec, dict(CROP_PAYLOAD, humidity=120))

    def test_parse_request_accepts_numeric_strings(self) -> None:
        spec = get_handler_spec(AnalysisKind.CROP_RECOMMENDATION)
        request = parse_request(spec, dict(CROP_PAYLOAD, nitrogen="40", area=2))
        self.assertEqual(request.nitrogen, 40.0)
        self.assertEqual(request.area, "2")

    def test_parse_request_rejects_boolean_readings(self) -> None:
        spec = get_handler_spec(AnalysisKind.CROP_RECOMMENDATION)
        for flag in (True, False):
            with self.subTest(flag=flag):
                with self.assertRaises(ValidationError) as ctx:
                    parse_request(spec, dict(CROP_PAYLOAD, nitrogen=flag))
                self.assertEqual(ctx.exception.missing_fields, [])
                self.assertIn("nitrogen", str(ctx.exception))

    def test_boolean_is_rejected_for_optional_numbers_too(self) -> None:
        spec = get_handler_spec(AnalysisKind.LOAN_RECOMMENDATION)
        payload = {"farmSize": 2, "income": 50000, "loanPurpose": "tractor"}
        self.assertIsNone(parse_request(spec, payload).credit_score)
        with self.assertRaises(ValidationError):
            parse_request(spec, dict(payload, creditScore=True))


class AnalysisServiceTests(unittest.IsolatedAsyncioTestCase):
    async def test_every_missing_field_combination_is_rejected(self) -> None:
        client = FakeTextClient(CROP_COMPLETION)
        service = AnalysisService(client)
        for size in range(1, len(CROP_REQUIRED) + 1):
            for dropped in combinations(CROP_REQUIRED, size):
                payload = {
                    key: value
                    for key, value in CROP_PAYLOAD.items()
                    if key not in dropped
                }
                with self.subTest(dropped=dropped):
                    with self.assertRaises(ValidationError) as ctx:
                        await service.handle(AnalysisKind.CROP_RECOMMENDATION, payload)
                    self.assertEqual(
                        set(ctx.exception.missing_fields), set(dropped)
                    )
        self.assertEqual(client.call_count, 0)

    async def test_missing_field_message_names_the_fields(self) -> None:
        service = AnalysisService(FakeTextClient(CROP_COMPLETION))
        payload = {key: value for key, value in CROP_PAYLOAD.items() if key != "ph"}
        with self.assertRaises(ValidationError) as ctx:
            await service.handle(AnalysisKind.CROP_RECOMMENDATION, payload)
        self.assertEqual(str(ctx.exception), "Crop recommendation requires: ph.")

    async def test_blank_chat_message_is_rejected(self) -> None:
        client = FakeTextClient("hello")
        service = AnalysisService(client)
        for message in ("", "   ", None):
            with self.subTest(message=message):
                with self.assertRaises(ValidationError) as ctx:
                    await service.handle(AnalysisKind.CHAT, {"message": message})
                self.assertEqual(ctx.exception.missing_fields, ["message"])
        self.assertEqual(client.call_count, 0)

    async def test_non_numeric_reading_is_rejected_before_upstream(self) -> None:
        client = FakeTextClient(CROP_COMPLETION)
        service = AnalysisService(client)
        with self.assertRaises(ValidationError):
            await service.handle(
                AnalysisKind.CROP_RECOMMENDATION, dict(CROP_PAYLOAD, ph="high")
            )
        self.assertEqual(client.call_count, 0)

    async def test_blank_camel_key_never_reaches_upstream(self) -> None:
        client = FakeTextClient("Leaf blight")
        service = AnalysisService(client)
        with self.assertRaises(ValidationError):
            await service.handle(
                AnalysisKind.DISEASE_DETECTION,
                {"symptoms": "brown spots", "cropType": "", "crop_type": "Rice"},
            )
        self.assertEqual(client.call_count, 0)

    async def test_structured_crop_recommendation(self) -> None:
        client = FakeTextClient(CROP_COMPLETION)
        service = AnalysisService(client)
        envelope = await service.handle(AnalysisKind.CROP_RECOMMENDATION, CROP_PAYLOAD)

        self.assertTrue(envelope.success)
        self.assertTrue(envelope.structured)
        self.assertEqual(envelope.interpretation, InterpretationStrategy.EMBEDDED_JSON)
        self.assertEqual(envelope.data["recommended_crops"], ["Rice", "Wheat"])
        self.assertEqual(envelope.raw_response, CROP_COMPLETION)
        self.assertEqual(envelope.model, "fake/granite-test")
        self.assertEqual(envelope.kind, AnalysisKind.CROP_RECOMMENDATION)
        self.assertEqual(envelope.message, "Crop recommendations generated successfully")
        self.assertGreaterEqual(envelope.confidence, 0.0)
        self.assertLessEqual(envelope.confidence, 1.0)
        self.assertIsNone(envelope.assessment)
        self.assertIsNotNone(envelope.timestamp.tzinfo)

        self.assertEqual(client.call_count, 1)
        prompt = client.calls[0]["prompt"]
        self.assertIn("- Nitrogen: 40 ppm", prompt)
        self.assertIn("- Soil Type: Mixed", prompt)

    async def test_unstructured_completion_is_returned_as_text(self) -> None:
        raw = "Grow rice this season and irrigate twice a week."
        service = AnalysisService(FakeTextClient(raw))
        envelope = await service.handle(AnalysisKind.CROP_RECOMMENDATION, CROP_PAYLOAD)
        self.assertFalse(envelope.structured)
        self.assertEqual(envelope.interpretation, InterpretationStrategy.RAW_TEXT)
        self.assertEqual(envelope.data, raw)
        self.assertEqual(envelope.raw_response, raw)

    async def test_upstream_error_propagates(self) -> None:
        client = FakeTextClient(error=UpstreamTimeout("slow", backend="fake"))
        service = AnalysisService(client)
        with self.assertRaises(UpstreamTimeout):
            await service.handle(AnalysisKind.CROP_RECOMMENDATION, CROP_PAYLOAD)
        self.assertEqual(client.call_count, 1)

    async def test_soil_report_carries_local_assessment(self) -> None:
        service = AnalysisService(FakeTextClient('{"summary": "Healthy soil"}'))
        envelope = await service.handle(
            AnalysisKind.SOIL_REPORT,
            {"nitrogen": 50, "phosphorus": 20, "potassium": 150, "ph": 6.8},
        )
        self.assertEqual(envelope.assessment["overall_score"], 90)
        self.assertEqual(envelope.assessment["nutrient_status"]["nitrogen"], "Adequate")
        self.assertEqual(envelope.assessment["data_completeness"], 0.25)
        self.assertEqual(envelope.data, {"summary": "Healthy soil"})

    async def test_chat_uses_shorter_generation_budget(self) -> None:
        client = FakeTextClient("Sow wheat in November.")
        service = AnalysisService(client)
        await service.handle(AnalysisKind.CHAT, {"message": "When to sow wheat?"})
        params = client.calls[0]["params"]
        self.assertEqual(params.max_new_tokens, 800)

    async def test_task_model_override(self) -> None:
        client = FakeTextClient("Sow wheat in November.")
        service = AnalysisService(client)
        with patch.dict(TASK_MODELS, {AnalysisKind.CHAT: "ibm/granite-13b-chat-v2"}):
            envelope = await service.handle(AnalysisKind.CHAT, {"message": "Hi"})
        self.assertEqual(client.calls[0]["model_id"], "ibm/granite-13b-chat-v2")
        self.assertEqual(envelope.model, "ibm/granite-13b-chat-v2")

    async def test_kind_accepts_route_style_names(self) -> None:
        service = AnalysisService(FakeTextClient(CROP_COMPLETION))
        envelope = await service.handle("crop-recommendation", CROP_PAYLOAD)
        self.assertEqual(envelope.kind, AnalysisKind.CROP_RECOMMENDATION)

    async def test_model_reported_confidence_wins(self) -> None:
        completion = json.dumps(
            {"advice": "Use drip irrigation", "confidence_score": 90}
        )
        service = AnalysisService(FakeTextClient(completion))
        envelope = await service.handle(AnalysisKind.CHAT, {"message": "Water?"})
        self.assertEqual(envelope.confidence, 0.9)

    async def test_education_accepts_empty_body(self) -> None:
        client = FakeTextClient("Module 1: Composting basics")
        service = AnalysisService(client)
        envelope = await service.handle(AnalysisKind.FARMER_EDUCATION, {})
        self.assertTrue(envelope.success)
        self.assertIn("sustainable farming practices", client.calls[0]["prompt"])

    async def test_health_reports_client_status(self) -> None:
        service = AnalysisService(FakeTextClient("OK"))
        status = await service.health()
        self.assertTrue(status.available)


if __name__ == "__main__":
    unittest.main()
