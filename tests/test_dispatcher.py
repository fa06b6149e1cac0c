import json
import unittest

import httpx

from models.models import TranslationSettings
from translator.dispatcher import ROUTING_PROXY, ProviderDispatcher, compose_prompt
from translator.errors import (
    MalformedResponseError,
    MissingCredentialError,
    NetworkError,
    ProviderError,
    UnsupportedProviderError,
)
from translator.secret_store import SecretStore

from fakes import recording_transport

ALL_KEYS = {
    "openai_api_key": "sk-test",
    "cohere_api_key": "co-test",
    "google_api_key": "g-test",
    "anthropic_api_key": "ant-test",
    "gemini_api_key": "gem-test",
}


def make_settings(provider="openai", model="gpt-4", prompt="Translate to English:"):
    return TranslationSettings(provider=provider, model=model, prompt_template=prompt)


class TestProviderDispatcher(unittest.IsolatedAsyncioTestCase):
    def setUp(self):
        self.requests = []

    def dispatcher(self, secrets=None, **kwargs):
        transport = kwargs.pop("transport", None) or recording_transport(
            self.requests, **kwargs.pop("response", {})
        )
        return ProviderDispatcher(
            SecretStore(ALL_KEYS if secrets is None else secrets),
            transport=transport,
            **kwargs,
        )

    async def test_openai_chat_completion_request_and_trimmed_result(self):
        dispatcher = self.dispatcher(
            response={"json_body": {"choices": [{"message": {"content": " Hello "}}]}}
        )

        result = await dispatcher.translate("Bonjour", make_settings())

        self.assertEqual(result, "Hello")
        self.assertEqual(len(self.requests), 1)
        request = self.requests[0]
        self.assertEqual(str(request.url), "https://api.openai.com/v1/chat/completions")
        self.assertEqual(request.method, "POST")
        self.assertEqual(request.headers["Authorization"], "Bearer sk-test")
        self.assertEqual(request.headers["Content-Type"], "application/json")
        body = json.loads(request.content)
        self.assertEqual(body["model"], "gpt-4")
        self.assertEqual(
            body["messages"],
            [{"role": "user", "content": 'Translate to English:\n\n"Bonjour"'}],
        )

    async def test_each_provider_envelope_is_normalized(self):
        cases = [
            ("cohere", "command", {"text": " Hola "}, "Hola"),
            ("google", "text-bison", {"candidates": [{"output": "Hallo\n"}]}, "Hallo"),
            ("anthropic", "claude-v1", {"completion": "  Ciao"}, "Ciao"),
            (
                "gemini",
                "gemini-1.5-pro",
                {"candidates": [{"content": {"parts": [{"text": "Hej "}]}}]},
                "Hej",
            ),
        ]
        for provider, model, envelope, expected in cases:
            with self.subTest(provider=provider):
                dispatcher = self.dispatcher(response={"json_body": envelope})
                result = await dispatcher.translate(
                    "Bonjour", make_settings(provider=provider, model=model)
                )
                self.assertEqual(result, expected)

    async def test_provider_specific_request_shapes(self):
        dispatcher = self.dispatcher(
            response={"json_body": {"candidates": [{"output": "ok"}]}}
        )
        await dispatcher.translate("Bonjour", make_settings("google", "chat-bison"))
        request = self.requests[-1]
        self.assertEqual(request.url.params["key"], "g-test")
        self.assertIn("models/chat-bison:generateText", request.url.path)
        self.assertEqual(
            json.loads(request.content),
            {"prompt": {"text": 'Translate to English:\n\n"Bonjour"'}},
        )

        dispatcher = self.dispatcher(response={"json_body": {"completion": "ok"}})
        await dispatcher.translate("Bonjour", make_settings("anthropic", "claude-v1"))
        request = self.requests[-1]
        self.assertEqual(request.headers["x-api-key"], "ant-test")
        body = json.loads(request.content)
        self.assertTrue(body["prompt"].startswith("\n\nHuman: Translate to English:"))
        self.assertTrue(body["prompt"].endswith("\n\nAssistant:"))

    async def test_unsupported_provider_fails_before_network(self):
        dispatcher = self.dispatcher(response={"json_body": {}})
        with self.assertRaises(UnsupportedProviderError):
            await dispatcher.translate("Bonjour", make_settings(provider="deepl"))
        self.assertEqual(self.requests, [])

    async def test_missing_credential_fails_before_network(self):
        for secrets in ({}, {"openai_api_key": ""}, {"openai_api_key": "   "}):
            with self.subTest(secrets=secrets):
                dispatcher = self.dispatcher(secrets=secrets, response={"json_body": {}})
                with self.assertRaises(MissingCredentialError) as ctx:
                    await dispatcher.translate("Bonjour", make_settings())
                self.assertEqual(ctx.exception.provider, "openai")
        self.assertEqual(self.requests, [])

    async def test_missing_model_fails_before_network(self):
        dispatcher = self.dispatcher(response={"json_body": {}})
        with self.assertRaises(ValueError):
            await dispatcher.translate("Bonjour", make_settings(model=""))
        self.assertEqual(self.requests, [])

    async def test_error_status_raises_provider_error_with_body(self):
        dispatcher = self.dispatcher(
            response={"status_code": 401, "text": "invalid_api_key"}
        )
        with self.assertRaises(ProviderError) as ctx:
            await dispatcher.translate("Bonjour", make_settings())
        self.assertEqual(ctx.exception.status_code, 401)
        self.assertEqual(ctx.exception.body, "invalid_api_key")
        self.assertTrue(ctx.exception.is_auth_error)

    async def test_redirect_status_raises_provider_error(self):
        dispatcher = self.dispatcher(response={"status_code": 302, "text": "moved"})
        with self.assertRaises(ProviderError) as ctx:
            await dispatcher.translate("Bonjour", make_settings())
        self.assertEqual(ctx.exception.status_code, 302)
        self.assertEqual(ctx.exception.body, "moved")
        self.assertFalse(ctx.exception.is_auth_error)

        # 即使重定向响应体形如正常结果也不能当作译文
        envelope = {"choices": [{"message": {"content": "Hello"}}]}
        dispatcher = self.dispatcher(
            response={"status_code": 301, "json_body": envelope}
        )
        with self.assertRaises(ProviderError):
            await dispatcher.translate("Bonjour", make_settings())

    async def test_server_error_is_not_retried(self):
        dispatcher = self.dispatcher(response={"status_code": 500, "text": "overloaded"})
        with self.assertRaises(ProviderError):
            await dispatcher.translate("Bonjour", make_settings())
        self.assertEqual(len(self.requests), 1)

    async def test_missing_result_field_raises_malformed_response(self):
        envelopes = [
            {"choices": []},
            {"choices": [{"message": {}}]},
            {"choices": [{"message": {"content": None}}]},
            {"error": "nope"},
        ]
        for envelope in envelopes:
            with self.subTest(envelope=envelope):
                dispatcher = self.dispatcher(response={"json_body": envelope})
                with self.assertRaises(MalformedResponseError):
                    await dispatcher.translate("Bonjour", make_settings())

    async def test_non_json_body_raises_malformed_response(self):
        dispatcher = self.dispatcher(response={"text": "<html>oops</html>"})
        with self.assertRaises(MalformedResponseError):
            await dispatcher.translate("Bonjour", make_settings())

    async def test_transport_failure_raises_network_error(self):
        def refuse(request):
            raise httpx.ConnectError("connection refused", request=request)

        dispatcher = self.dispatcher(transport=httpx.MockTransport(refuse))
        with self.assertRaises(NetworkError) as ctx:
            await dispatcher.translate("Bonjour", make_settings())
        self.assertIn("connection refused", str(ctx.exception))

    async def test_proxy_routing_posts_to_generic_endpoint(self):
        dispatcher = self.dispatcher(
            routing_mode=ROUTING_PROXY,
            proxy_base_url="http://host.local/",
            request_headers={"X-CSRF-Token": "csrf"},
            response={"json_body": {"text": "Hello"}},
        )

        result = await dispatcher.translate("Bonjour", make_settings("cohere", "command"))

        self.assertEqual(result, "Hello")
        request = self.requests[0]
        self.assertEqual(str(request.url), "http://host.local/api/cohere")
        self.assertEqual(request.headers["X-CSRF-Token"], "csrf")
        self.assertNotIn("Authorization", request.headers)
        body = json.loads(request.content)
        self.assertEqual(body["apiKey"], "co-test")
        self.assertEqual(body["model"], "command")
        self.assertEqual(body["message"], 'Translate to English:\n\n"Bonjour"')

    def test_unknown_routing_mode_is_rejected(self):
        with self.assertRaises(ValueError):
            ProviderDispatcher(SecretStore(), routing_mode="carrier-pigeon")

    def test_compose_prompt_layout(self):
        self.assertEqual(compose_prompt("P:", 'say "hi"'), 'P:\n\n"say "hi""')


if __name__ == "__main__":
    unittest.main()
