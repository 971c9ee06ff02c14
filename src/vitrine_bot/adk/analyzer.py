
"""Analisador de conversa: intenção, sentimento, complexidade e especialista sugerido.

Nunca bloqueia o pipeline: qualquer falha vira a classificação padrão.
"""
from __future__ import annotations
from typing import Sequence
from pydantic import BaseModel, ConfigDict, Field, field_validator
from kink import di
from ..core.llm_client import LLMClient
from ..core.logging import get_logger
from ..core.settings import Settings
from ..ports.interfaces import MessageDTO
from ..repo import repo
from .specialists import normalize_agent_type

log = get_logger()

ANALYSIS_SYSTEM = """Você analisa conversas de atendimento de uma loja.
Com base nas últimas mensagens, responda SOMENTE com JSON no formato:
{"intent": "...", "sentiment": 0, "complexity": 0, "suggestedAgent": "..."}

- intent: browsing | purchase | support | question | complaint | other
- sentiment: inteiro de -100 (muito negativo) a 100 (muito positivo)
- complexity: inteiro de 0 (simples) a 100 (muito complexo)
- suggestedAgent: seller | consultant | support | technical
"""

def _clamp(value: int, low: int, high: int) -> int:
    return max(low, min(high, value))

class AnalysisResult(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    intent: str = Field(min_length=1)
    suggested_agent: str = Field(alias="suggestedAgent", min_length=1)
    sentiment: int = 0
    complexity: int = 30

    @field_validator("sentiment", "complexity", mode="before")
    @classmethod
    def _round(cls, v, info):
        if v is None:
            return 0 if info.field_name == "sentiment" else 30
        return int(round(float(v)))

    @field_validator("sentiment")
    @classmethod
    def _clamp_sentiment(cls, v: int) -> int:
        return _clamp(v, -100, 100)

    @field_validator("complexity")
    @classmethod
    def _clamp_complexity(cls, v: int) -> int:
        return _clamp(v, 0, 100)

DEFAULT_ANALYSIS = AnalysisResult(intent="browsing", suggestedAgent="seller", sentiment=0, complexity=30)

def render_turns(turns: Sequence[MessageDTO]) -> str:
    """Linhas `Cliente:` / `Atendente:` das mensagens."""
    lines = []
    for m in turns:
        who = "Cliente" if m.role == "user" else "Atendente"
        lines.append(f"{who}: {m.content}")
    return "\n".join(lines)

class ConversationAnalyzer:
    def __init__(self, llm: LLMClient | None = None, window: int | None = None):
        self.llm = llm or di[LLMClient]
        self.window = window or di[Settings].analysis_window

    def classify(self, turns: Sequence[MessageDTO]) -> AnalysisResult:
        recent = list(turns)[-self.window:]
        user = "Conversa:\n" + render_turns(recent)
        try:
            result = self.llm.complete_json(ANALYSIS_SYSTEM, user, AnalysisResult)
        except Exception as exc:
            log.warning("analysis_failed", error=str(exc)[:300])
            return DEFAULT_ANALYSIS
        return result.model_copy(update={"suggested_agent": normalize_agent_type(result.suggested_agent)})

    def analyze(self, conversation_id: str, turns: Sequence[MessageDTO]) -> AnalysisResult:
        """Classifica as últimas mensagens e grava o resultado na conversa."""
        result = self.classify(turns)
        repo.update_analysis(
            conversation_id,
            intent=result.intent,
            sentiment=result.sentiment,
            complexity=result.complexity,
            agent_type=result.suggested_agent,
        )
        repo.log_event(conversation_id, "analysis", result.model_dump(by_alias=True))
        return result
