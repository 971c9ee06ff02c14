
"""Toolkit: registro de tools tipadas (Pydantic), contexto do turno e execução de chamadas."""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Type
from pydantic import BaseModel, ConfigDict, ValidationError
import json
from ...core.catalog import CatalogSnapshot
from ..tools.results import ToolFailure
from ...core.logging import get_logger

log = get_logger()

@dataclass
class TurnContext:
    """Estado de um turno do cliente, compartilhado entre as tools."""
    tenant_id: str
    conversation_id: str
    channel: str
    snapshot: CatalogSnapshot
    metadata: list[BaseModel] = field(default_factory=list)
    order: Any = None
    handoff: bool = False

    @property
    def last_metadata(self) -> BaseModel | None:
        return self.metadata[-1] if self.metadata else None

class ToolSpec(BaseModel):
    model_config = ConfigDict(arbitrary_types_allowed=True)

    name: str
    description: str
    args_schema: Type[BaseModel]
    func: Callable[[BaseModel, TurnContext], BaseModel]

    def to_openai_function(self) -> dict:
        """Converte para schema de tool (OpenAI/LiteLLM style)."""
        schema = self.args_schema.model_json_schema(by_alias=True)
        schema.pop("title", None)
        return {
            "type": "function",
            "function": {
                "name": self.name,
                "description": self.description,
                "parameters": schema,
            },
        }

class ToolRegistry:
    """Registro fixo de tools disponíveis para o agente."""
    def __init__(self):
        self._tools: Dict[str, ToolSpec] = {}

    def register(self, spec: ToolSpec) -> None:
        if spec.name in self._tools:
            raise ValueError(f"tool duplicada: {spec.name}")
        self._tools[spec.name] = spec

    def names(self) -> list[str]:
        return list(self._tools)

    def openai_tools(self) -> list[dict]:
        return [t.to_openai_function() for t in self._tools.values()]

    def execute(self, name: str, arguments_json: str | None, ctx: TurnContext) -> BaseModel:
        """Valida argumentos e executa a tool. Erros de entrada viram ToolFailure estruturado."""
        spec = self._tools.get(name)
        if spec is None:
            return ToolFailure(tool=name, error="unknown_tool", message=f"Ferramenta desconhecida: {name}")
        try:
            args = json.loads(arguments_json or "{}")
            model = spec.args_schema.model_validate(args)
        except (json.JSONDecodeError, ValidationError) as exc:
            return ToolFailure(tool=name, error="invalid_arguments", message=str(exc)[:500])
        try:
            return spec.func(model, ctx)
        except Exception:
            log.exception("tool_failed", tool=name, conversation_id=ctx.conversation_id)
            return ToolFailure(tool=name, error="tool_failed",
                               message="Erro interno ao executar a ferramenta. Peça desculpas ao cliente e ofereça tentar novamente.")
