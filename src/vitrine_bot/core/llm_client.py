
"""Cliente HTTP para LiteLLM: JSON validado por Pydantic, chat com tools e transcrição de áudio."""
from typing import Any, Type
import httpx
from pydantic import BaseModel
from kink import di
from .settings import Settings
from ..ports.interfaces import AudioClip

class LLMClient:
    """Cliente do gateway LiteLLM (API compatível com OpenAI).
    Suporta: complete_json(), chat() e transcribe().
    """
    def __init__(self, settings: Settings | None = None, transport: httpx.BaseTransport | None = None):
        self.settings = settings or di[Settings]
        self.transport = transport

    def _client(self) -> httpx.Client:
        headers = {}
        if self.settings.litellm_api_key:
            headers["Authorization"] = f"Bearer {self.settings.litellm_api_key}"
        return httpx.Client(
            base_url=self.settings.litellm_base_url,
            timeout=self.settings.litellm_timeout_s,
            headers=headers,
            transport=self.transport,
        )

    def _post_completion(self, payload: dict) -> dict:
        with self._client() as cli:
            r = cli.post("/chat/completions", json=payload)
            r.raise_for_status()
            return r.json()

    def complete_json(self, system: str, user: str, schema: Type[BaseModel]) -> BaseModel:
        """Completa em modo JSON e valida no schema; tenta o modelo de fallback uma vez."""
        payload = {
            "model": self.settings.litellm_model_primary,
            "messages": [
                {"role": "system", "content": system},
                {"role": "user", "content": user},
            ],
            "response_format": {"type": "json_object"},
            "temperature": 0.2,
            "max_tokens": 200,
        }
        try:
            data = self._post_completion(payload)
            return schema.model_validate_json(data["choices"][0]["message"]["content"] or "")
        except httpx.HTTPError:
            payload["model"] = self.settings.litellm_model_fallback
            data = self._post_completion(payload)
            return schema.model_validate_json(data["choices"][0]["message"]["content"] or "")

    def chat(self, *, messages: list[dict[str, Any]], tools: list[dict] | None = None) -> dict[str, Any]:
        """Uma rodada de chat completion; retorna a mensagem `assistant` (com ou sem tool_calls)."""
        payload: dict[str, Any] = {
            "model": self.settings.litellm_model_primary,
            "messages": messages,
            "temperature": self.settings.litellm_temperature,
            "max_tokens": self.settings.litellm_max_tokens,
        }
        if tools:
            payload["tools"] = tools
            payload["tool_choice"] = "auto"
        data = self._post_completion(payload)
        return data["choices"][0]["message"]

    def transcribe(self, clip: AudioClip) -> str:
        """Transcreve áudio (PT-BR) via /audio/transcriptions."""
        with self._client() as cli:
            r = cli.post(
                "/audio/transcriptions",
                data={"model": self.settings.litellm_model_transcription, "language": "pt"},
                files={"file": (clip.filename, clip.data, clip.content_type)},
            )
            r.raise_for_status()
            return (r.json().get("text") or "").strip()
