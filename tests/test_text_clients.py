import asyncio
import json
import sys
import unittest
from pathlib import Path
from urllib.parse import parse_qs

ROOT = Path(__file__).resolve().parents[1]
sys.path.insert(0, str(ROOT))

import httpx

from anndata_ai.domain.enums import DecodingMethod
from anndata_ai.domain.errors import (
    UpstreamAuthError,
    UpstreamEmptyResponse,
    UpstreamTimeout,
    UpstreamUnavailable,
)
from anndata_ai.infra.config import AppConfig
from anndata_ai.infra.huggingface import HuggingFaceClient
from anndata_ai.infra.llm import build_text_client
from anndata_ai.infra.watsonx import IAM_GRANT_TYPE, WatsonxClient
from anndata_ai.schemas import GenerationParameters


WATSONX_URL = "https://wx.example.test"
IAM_URL = "https://iam.example.test/identity/token"
HF_URL = "https://hf.example.test/models"


class _WatsonxStub:
    """Routes IAM and generation requests and records what was sent."""

    def __init__(
        self,
        *,
        generated_text="  Rice and wheat.  ",
        generation_status=200,
        generation_body=None,
        iam_status=200,
        expires_in=3600,
    ):
        self.generated_text = generated_text
        self.generation_status = generation_status
        self.generation_body = generation_body
        self.iam_status = iam_status
        self.expires_in = expires_in
        self.iam_requests = []
        self.generation_requests = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        if str(request.url).startswith(IAM_URL):
            self.iam_requests.append(request)
            if self.iam_status != 200:
                return httpx.Response(self.iam_status, json={"errorCode": "BXNIM0415E"})
            return httpx.Response(
                200,
                json={
                    "access_token": f"token-{len(self.iam_requests)}",
                    "expires_in": self.expires_in,
                },
            )
        self.generation_requests.append(request)
        if self.generation_body is not None:
            return httpx.Response(self.generation_status, content=self.generation_body)
        return httpx.Response(
            self.generation_status,
            json={"results": [{"generated_text": self.generated_text}]},
        )


def _watsonx(stub, **kwargs) -> WatsonxClient:
    http_client = httpx.AsyncClient(transport=httpx.MockTransport(stub))
    options = dict(
        api_key="wx-key",
        project_id="proj-1",
        url=WATSONX_URL,
        iam_url=IAM_URL,
        http_client=http_client,
    )
    options.update(kwargs)
    return WatsonxClient(**options)


class WatsonxClientTests(unittest.IsolatedAsyncioTestCase):
    async def test_request_shape_and_stripped_text(self) -> None:
        stub = _WatsonxStub()
        client = _watsonx(stub)
        text = await client.generate("Recommend crops")

        self.assertEqual(text, "Rice and wheat.")
        iam_form = parse_qs(stub.iam_requests[0].content.decode())
        self.assertEqual(iam_form["grant_type"], [IAM_GRANT_TYPE])
        self.assertEqual(iam_form["apikey"], ["wx-key"])

        request = stub.generation_requests[0]
        self.assertEqual(request.url.path, "/ml/v1/text/generation")
        self.assertEqual(request.url.params["version"], "2024-05-31")
        self.assertEqual(request.headers["Authorization"], "Bearer token-1")
        body = json.loads(request.content)
        self.assertEqual(body["input"], "Recommend crops")
        self.assertEqual(body["model_id"], "ibm/granite-3-8b-instruct")
        self.assertEqual(body["project_id"], "proj-1")
        self.assertEqual(body["parameters"]["decoding_method"], "greedy")
        self.assertEqual(body["parameters"]["max_new_tokens"], 2000)
        self.assertEqual(body["parameters"]["min_new_tokens"], 50)
        self.assertEqual(body["parameters"]["stop_sequences"], [])

    async def test_parameter_and_model_overrides(self) -> None:
        stub = _WatsonxStub()
        client = _watsonx(stub)
        params = GenerationParameters(max_new_tokens=800, decoding_method="sampling")
        await client.generate("Hi", params, "ibm/granite-13b-chat-v2")
        body = json.loads(stub.generation_requests[0].content)
        self.assertEqual(body["model_id"], "ibm/granite-13b-chat-v2")
        self.assertEqual(body["parameters"]["max_new_tokens"], 800)
        self.assertEqual(body["parameters"]["decoding_method"], "sample")
        self.assertEqual(body["parameters"]["temperature"], 0.8)

    async def test_token_is_cached_between_calls(self) -> None:
        stub = _WatsonxStub()
        client = _watsonx(stub)
        await client.generate("one")
        await client.generate("two")
        self.assertEqual(len(stub.iam_requests), 1)
        self.assertEqual(len(stub.generation_requests), 2)

    async def test_short_lived_token_is_refreshed(self) -> None:
        stub = _WatsonxStub(expires_in=30)
        client = _watsonx(stub)
        await client.generate("one")
        await client.generate("two")
        self.assertEqual(len(stub.iam_requests), 2)
        self.assertEqual(
            stub.generation_requests[1].headers["Authorization"], "Bearer token-2"
        )

    async def test_rejected_api_key_is_auth_error(self) -> None:
        stub = _WatsonxStub(iam_status=400)
        client = _watsonx(stub)
        with self.assertRaises(UpstreamAuthError):
            await client.generate("Hi")
        self.assertEqual(stub.generation_requests, [])

    async def test_generation_auth_failure_drops_cached_token(self) -> None:
        for status in (401, 403):
            with self.subTest(status=status):
                stub = _WatsonxStub(generation_status=status)
                client = _watsonx(stub)
                with self.assertRaises(UpstreamAuthError) as ctx:
                    await client.generate("Hi")
                self.assertEqual(ctx.exception.status_code, status)
                self.assertIsNone(client._token)

    async def test_server_errors_are_unavailable(self) -> None:
        for status in (404, 500, 503):
            with self.subTest(status=status):
                client = _watsonx(_WatsonxStub(generation_status=status))
                with self.assertRaises(UpstreamUnavailable) as ctx:
                    await client.generate("Hi")
                self.assertEqual(ctx.exception.status_code, status)
                self.assertEqual(ctx.exception.reason, "unavailable")

    async def test_missing_or_blank_text_is_empty_response(self) -> None:
        bodies = [
            json.dumps({"results": []}).encode(),
            json.dumps({"results": [{"generated_text": "   "}]}).encode(),
            json.dumps({"results": [{"stop_reason": "eos_token"}]}).encode(),
            b"<html>gateway</html>",
        ]
        for body in bodies:
            with self.subTest(body=body):
                client = _watsonx(_WatsonxStub(generation_body=body))
                with self.assertRaises(UpstreamEmptyResponse):
                    await client.generate("Hi")

    async def test_connection_error_is_unavailable(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        client = _watsonx(handler)
        with self.assertRaises(UpstreamUnavailable):
            await client.generate("Hi")

    async def test_transport_timeout_is_timeout(self) -> None:
        def handler(request: httpx.Request) -> httpx.Response:
            raise httpx.ReadTimeout("read timed out", request=request)

        client = _watsonx(handler)
        with self.assertRaises(UpstreamTimeout):
            await client.generate("Hi")

    async def test_slow_upstream_hits_client_timeout(self) -> None:
        stub = _WatsonxStub()

        async def handler(request: httpx.Request) -> httpx.Response:
            if str(request.url).startswith(IAM_URL):
                return stub(request)
            await asyncio.sleep(1.0)
            return httpx.Response(200, json={"results": [{"generated_text": "late"}]})

        client = _watsonx(handler, timeout=0.05)
        with self.assertRaises(UpstreamTimeout) as ctx:
            await client.generate("Hi")
        self.assertEqual(ctx.exception.reason, "timeout")

    async def test_health_check(self) -> None:
        client = _watsonx(_WatsonxStub(generated_text="OK"))
        status = await client.health_check()
        self.assertTrue(status.available)
        self.assertEqual(status.backend, "watsonx")

        failing = _watsonx(_WatsonxStub(iam_status=401))
        status = await failing.health_check()
        self.assertFalse(status.available)
        self.assertEqual(status.error, "auth")

    def test_missing_credentials(self) -> None:
        with self.assertRaises(ValueError):
            WatsonxClient(api_key=None, project_id="proj")
        with self.assertRaises(ValueError):
            WatsonxClient(api_key="key", project_id="")


class HuggingFaceClientTests(unittest.IsolatedAsyncioTestCase):
    def _client(self, handler) -> HuggingFaceClient:
        return HuggingFaceClient(
            api_key="hf-key",
            base_url=HF_URL,
            http_client=httpx.AsyncClient(transport=httpx.MockTransport(handler)),
        )

    async def test_request_shape_and_list_response(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(request)
            return httpx.Response(200, json=[{"generated_text": " Grow millet. "}])

        client = self._client(handler)
        params = GenerationParameters(stop_sequences=["\n\n"])
        text = await client.generate("What grows in dry soil?", params)

        self.assertEqual(text, "Grow millet.")
        request = seen[0]
        self.assertEqual(
            str(request.url), f"{HF_URL}/ibm-granite/granite-3.3-8b-instruct"
        )
        self.assertEqual(request.headers["Authorization"], "Bearer hf-key")
        body = json.loads(request.content)
        self.assertEqual(body["inputs"], "What grows in dry soil?")
        self.assertTrue(body["parameters"]["do_sample"])
        self.assertFalse(body["parameters"]["return_full_text"])
        self.assertEqual(body["parameters"]["max_new_tokens"], 500)
        self.assertEqual(body["parameters"]["stop"], ["\n\n"])

    async def test_greedy_decoding_disables_sampling(self) -> None:
        seen = []

        def handler(request: httpx.Request) -> httpx.Response:
            seen.append(json.loads(request.content))
            return httpx.Response(200, json={"generated_text": "ok"})

        client = self._client(handler)
        text = await client.generate(
            "Hi", GenerationParameters(decoding_method=DecodingMethod.GREEDY)
        )
        self.assertEqual(text, "ok")
        self.assertFalse(seen[0]["parameters"]["do_sample"])
        self.assertNotIn("stop", seen[0]["parameters"])

    async def test_error_statuses(self) -> None:
        cases = [
            (401, UpstreamAuthError),
            (403, UpstreamAuthError),
            (500, UpstreamUnavailable),
            (503, UpstreamUnavailable),
        ]
        for status, error in cases:
            with self.subTest(status=status):
                client = self._client(
                    lambda request, status=status: httpx.Response(
                        status, json={"error": "nope"}
                    )
                )
                with self.assertRaises(error):
                    await client.generate("Hi")

    async def test_missing_text_is_empty_response(self) -> None:
        for body in ([], [{}], {"error": None}, "text"):
            with self.subTest(body=body):
                client = self._client(
                    lambda request, body=body: httpx.Response(200, json=body)
                )
                with self.assertRaises(UpstreamEmptyResponse):
                    await client.generate("Hi")

    async def test_health_check(self) -> None:
        up = self._client(lambda request: httpx.Response(200, json=[{"generated_text": "OK"}]))
        self.assertTrue((await up.health_check()).available)

        down = self._client(lambda request: httpx.Response(503, json={"error": "loading"}))
        status = await down.health_check()
        self.assertFalse(status.available)
        self.assertEqual(status.error, "unavailable")
        self.assertEqual(status.backend, "huggingface")

    def test_missing_api_key(self) -> None:
        with self.assertRaises(ValueError):
            HuggingFaceClient(api_key="")


class BuildTextClientTests(unittest.TestCase):
    def test_builds_watsonx_client(self) -> None:
        cfg = AppConfig(
            LLM_BACKEND="watsonx",
            WATSONX_API_KEY="k",
            WATSONX_PROJECT_ID="p",
            WATSONX_MODEL="ibm/granite-3-2b-instruct",
        )
        client = build_text_client(cfg)
        self.assertIsInstance(client, WatsonxClient)
        self.assertEqual(client.default_model, "ibm/granite-3-2b-instruct")

    def test_builds_huggingface_client(self) -> None:
        cfg = AppConfig(
            LLM_BACKEND="hf", HUGGINGFACE_API_KEY="k", LLM_TIMEOUT_SECONDS=12
        )
        client = build_text_client(cfg)
        self.assertIsInstance(client, HuggingFaceClient)
        self.assertEqual(client.timeout, 12)

    def test_unknown_backend(self) -> None:
        cfg = AppConfig(LLM_BACKEND="openai")
        with self.assertRaises(ValueError):
            build_text_client(cfg)

    def test_missing_credentials_fail_fast(self) -> None:
        cfg = AppConfig(LLM_BACKEND="watsonx", WATSONX_API_KEY="", WATSONX_PROJECT_ID="")
        with self.assertRaises(ValueError):
            build_text_client(cfg)


if __name__ == "__main__":
    unittest.main()
