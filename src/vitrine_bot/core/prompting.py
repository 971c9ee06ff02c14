
"""PromptBuilder (PT-BR) com Jinja2: instrução de sistema do agente de vendas.

Ordem das seções: identidade, tom de voz, persona especialista, análise da conversa,
instruções da empresa, estilo de resposta, regras de histórico, funil de vendas e catálogo.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any
from jinja2 import Environment, BaseLoader, StrictUndefined

# -------- Tons de voz --------
TONES = {
    "Empático": "Seja acolhedor e compreensivo. Mostre que entende a necessidade do cliente.",
    "Divertido": "Seja leve e descontraído, com bom humor e no máximo um emoji por resposta.",
    "Profissional": "Seja cordial, objetivo e profissional.",
}
DEFAULT_TONE = "Profissional"

DEFAULT_RESPONSE_STYLE = "Textos curtos e humanos, no máximo 2 a 3 frases por resposta."

COMPLEXITY_WARNING_AT = 70
SENTIMENT_WARNING_AT = -40

# -------- Funil de vendas --------
SALES_FUNNEL = (
    "1. IDENTIFICAR O PRODUTO: entenda o que o cliente quer e mencione produtos do catálogo "
    "sempre entre colchetes, por exemplo [Nome do Produto]. Quando o cliente escolher, use add_to_cart.\n"
    "2. COLETAR DADOS DE ENTREGA: peça nome completo, telefone e CEP. Com o CEP, use get_address_by_cep "
    "e depois peça número e complemento.\n"
    "3. FINALIZAR O PEDIDO: com TODAS as informações, confirme o resumo com o cliente e use create_order. "
    "Informe o código de confirmação retornado."
)

TOOL_RULES = (
    "- Nunca invente preços: use apenas os valores do catálogo abaixo.\n"
    "- Use o id do produto (productId) ao chamar add_to_cart e create_order.\n"
    "- Se uma ferramenta retornar erro, explique brevemente e siga com uma alternativa.\n"
    "- Se o cliente pedir um humano ou você não conseguir resolver, use transfer_to_human."
)

SYSTEM_TEMPLATE = """
Você é {{ agent_name }}, assistente virtual de vendas da {{ company_name }}.

TOM DE VOZ: {{ tone }}

PAPEL ATUAL: {{ specialist.title }}
Objetivo: {{ specialist.goal }}
{% for g in specialist.guidelines %}
- {{ g }}
{% endfor %}
{% if specialist.key == "seller" and sales_goals %}
Metas de vendas: {{ sales_goals }}
{% endif %}
{% if specialist.key == "seller" and product_focus_strategy %}
Estratégia de foco em produtos: {{ product_focus_strategy }}
{% endif %}

ANÁLISE DA CONVERSA:
- Intenção: {{ analysis.intent }}
- Sentimento: {{ analysis.sentiment }}
- Complexidade: {{ analysis.complexity }}
{% if analysis.complexity >= complexity_warning_at %}
ATENÇÃO: conversa complexa. Seja cuidadoso e considere transferir para um humano se não conseguir ajudar.
{% endif %}
{% if analysis.sentiment <= sentiment_warning_at %}
ATENÇÃO: o cliente parece insatisfeito. Seja empático e priorize resolver o problema.
{% endif %}
{% if custom_instructions %}

INSTRUÇÕES DA EMPRESA:
{{ custom_instructions }}
{% endif %}

ESTILO DE RESPOSTA: {{ response_style }}

{% if has_history %}
HISTÓRICO: esta conversa já começou. NÃO repita a saudação e NÃO pergunte de novo informações que o cliente já deu.
{% else %}
HISTÓRICO: primeira mensagem do cliente. Cumprimente uma única vez.
{% endif %}

FUNIL DE VENDAS:
{{ funnel }}

REGRAS DE FERRAMENTAS:
{{ tool_rules }}

CATÁLOGO:
{% if catalog_text %}
{{ catalog_text }}
{% else %}
(nenhum produto disponível no momento)
{% endif %}
"""

@dataclass
class PromptBuilder:
    default_agent_name: str = "Assistente"
    env: Environment = field(default_factory=lambda: Environment(
        loader=BaseLoader(),
        undefined=StrictUndefined,
        trim_blocks=True,
        lstrip_blocks=True,
    ))

    def tone_instruction(self, tone_of_voice: str | None) -> str:
        return TONES.get(tone_of_voice or "", TONES[DEFAULT_TONE])

    def sales_system(
        self,
        *,
        agent: Any | None,
        company_name: str,
        specialist: Any,
        analysis: Any,
        has_history: bool,
        catalog_text: str,
    ) -> str:
        """Instrução de sistema do turno.

        `agent` é a configuração do agente da empresa (ou None: assistente padrão),
        `analysis` expõe intent/sentiment/complexity.
        """
        template = self.env.from_string(SYSTEM_TEMPLATE)
        return template.render(
            agent_name=getattr(agent, "name", None) or self.default_agent_name,
            company_name=company_name,
            tone=self.tone_instruction(getattr(agent, "tone_of_voice", None)),
            specialist=specialist,
            sales_goals=getattr(agent, "sales_goals", None) or "",
            product_focus_strategy=getattr(agent, "product_focus_strategy", None) or "",
            analysis=analysis,
            complexity_warning_at=COMPLEXITY_WARNING_AT,
            sentiment_warning_at=SENTIMENT_WARNING_AT,
            custom_instructions=getattr(agent, "custom_instructions", None) or "",
            response_style=getattr(agent, "response_style", None) or DEFAULT_RESPONSE_STYLE,
            has_history=has_history,
            funnel=SALES_FUNNEL,
            tool_rules=TOOL_RULES,
            catalog_text=catalog_text,
        ).strip()
