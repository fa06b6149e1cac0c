import os
import tempfile
import unittest

from fastapi import FastAPI
from fastapi.testclient import TestClient

from api.routes import (
    get_event_source,
    get_orchestrator,
    get_secret_store,
    router,
)
from models.models import DISPLAY_TEXT_KEY
from translator.errors import ProviderError
from translator.host import EventSource
from translator.orchestrator import TranslationOrchestrator
from translator.secret_store import SecretStore
from translator.settings_store import SettingsStore

from fakes import FakeHost, RecordingNotifier, ScriptedDispatcher, make_messages


class TestRoutes(unittest.TestCase):
    def setUp(self):
        self.tmp_dir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tmp_dir.cleanup)
        self.settings_store = SettingsStore(
            os.path.join(self.tmp_dir.name, "settings.json"), debounce_seconds=0
        )
        self.settings_store.load()
        self.host = FakeHost(make_messages("Bonjour"))
        self.dispatcher = ScriptedDispatcher()
        self.notifier = RecordingNotifier()
        self.orchestrator = TranslationOrchestrator(
            self.dispatcher, self.settings_store, self.host, self.notifier
        )
        self.events = EventSource()
        self.orchestrator.bind_events(self.events)

        app = FastAPI()
        app.include_router(router)
        app.dependency_overrides[get_orchestrator] = lambda: self.orchestrator
        app.dependency_overrides[get_event_source] = lambda: self.events
        app.dependency_overrides[get_secret_store] = lambda: SecretStore(
            {"openai_api_key": "sk-test"}
        )
        self.client = TestClient(app)
        self.prefix = "/api/v1/llm-translate"

    def test_list_providers(self):
        response = self.client.get(f"{self.prefix}/providers")

        self.assertEqual(response.status_code, 200)
        names = [p["name"] for p in response.json()]
        self.assertEqual(names, ["openai", "cohere", "google", "anthropic", "gemini"])

    def test_switching_provider_selects_first_model(self):
        response = self.client.patch(f"{self.prefix}/settings", json={"provider": "cohere"})

        self.assertEqual(response.status_code, 200)
        data = response.json()
        self.assertEqual(data["models"], ["command", "command-xlarge"])
        self.assertEqual(data["settings"]["llm_provider"], "cohere")
        self.assertEqual(data["settings"]["llm_model"], "command")

    def test_invalid_settings_are_rejected(self):
        response = self.client.patch(f"{self.prefix}/settings", json={"provider": "deepl"})
        self.assertEqual(response.status_code, 400)

        response = self.client.patch(f"{self.prefix}/settings", json={"model": "claude-v1"})
        self.assertEqual(response.status_code, 400)

    def test_secret_state_hides_values(self):
        response = self.client.get(f"{self.prefix}/secrets")

        self.assertEqual(response.json()["openai"], True)
        self.assertEqual(response.json()["cohere"], False)
        self.assertNotIn("sk-test", response.text)

    def test_translate_text(self):
        response = self.client.post(f"{self.prefix}/translate", json={"text": "Bonjour"})

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json(), {"text": "EN:Bonjour"})

    def test_translate_text_provider_failure_is_bad_gateway(self):
        self.dispatcher.responses["Bonjour"] = ProviderError("openai", 500, "boom")

        response = self.client.post(f"{self.prefix}/translate", json={"text": "Bonjour"})

        self.assertEqual(response.status_code, 502)
        self.assertIn("boom", response.json()["detail"])

    def test_new_message_is_translated_through_render_event(self):
        response = self.client.post(
            f"{self.prefix}/chat/messages", json={"mes": "Salut", "name": "Bob"}
        )

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["message_id"], 1)
        self.assertEqual(self.host.chat[1].extra[DISPLAY_TEXT_KEY], "EN:Salut")

    def test_host_event_validation(self):
        response = self.client.post(
            f"{self.prefix}/chat/events", json={"type": "unknown", "message_id": 0}
        )
        self.assertEqual(response.status_code, 400)

        response = self.client.post(
            f"{self.prefix}/chat/events",
            json={"type": "message_swiped", "message_id": 9},
        )
        self.assertEqual(response.status_code, 404)

    def test_translate_chat_returns_counts(self):
        response = self.client.post(f"{self.prefix}/chat/translate")

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.json()["translated"], 1)
        self.assertEqual(self.host.saves, 1)

    def test_compose_box_translation(self):
        response = self.client.post(f"{self.prefix}/chat/input", json={"text": "Merci"})
        self.assertEqual(response.json(), {"text": "EN:Merci"})

        response = self.client.post(f"{self.prefix}/chat/input", json={"text": ""})
        self.assertEqual(response.status_code, 400)

    def test_clear_requires_confirmation(self):
        self.host.chat[0].extra[DISPLAY_TEXT_KEY] = "Hello"

        response = self.client.post(f"{self.prefix}/chat/clear", json={})
        self.assertEqual(response.status_code, 409)
        self.assertEqual(self.host.chat[0].display_text, "Hello")

        response = self.client.post(f"{self.prefix}/chat/clear", json={"confirm": True})
        self.assertEqual(response.json(), {"cleared": True})
        self.assertIsNone(self.host.chat[0].display_text)


if __name__ == "__main__":
    unittest.main()
