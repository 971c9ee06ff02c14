import copy
import json
from types import SimpleNamespace

import httpx
import pytest
from kink import di
from sqlalchemy.pool import StaticPool

from vitrine_bot.core.db import create_session_factory
from vitrine_bot.core.llm_client import LLMClient
from vitrine_bot.core.prompting import PromptBuilder
from vitrine_bot.core.settings import Settings
from vitrine_bot.domain.services.cep_service import ViaCepClient
from vitrine_bot.repo.models import AgentConfig, Base, Company, Product

VIACEP_SE = {
    "cep": "01001-000",
    "logradouro": "Praça da Sé",
    "complemento": "lado ímpar",
    "bairro": "Sé",
    "localidade": "São Paulo",
    "uf": "SP",
}

def text_reply(content):
    return {"role": "assistant", "content": content}

def tool_call(name, args, call_id="call_1"):
    return {
        "role": "assistant",
        "content": None,
        "tool_calls": [{
            "id": call_id,
            "type": "function",
            "function": {"name": name, "arguments": json.dumps(args)},
        }],
    }

class FakeLLM:
    """LLM roteirizado: devolve as respostas de `replies` em ordem."""

    def __init__(self, replies=None, analysis=None, transcript="", transcribe_error=None):
        self.replies = list(replies or [])
        self.analysis = analysis if analysis is not None else {
            "intent": "purchase", "sentiment": 10, "complexity": 20, "suggestedAgent": "seller",
        }
        self.transcript = transcript
        self.transcribe_error = transcribe_error
        self.chat_calls = []
        self.json_calls = []

    def chat(self, *, messages, tools=None):
        self.chat_calls.append({"messages": copy.deepcopy(messages), "tools": tools})
        if not self.replies:
            return text_reply("")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply

    def complete_json(self, system, user, schema):
        self.json_calls.append({"system": system, "user": user})
        if isinstance(self.analysis, Exception):
            raise self.analysis
        return schema.model_validate_json(json.dumps(self.analysis))

    def transcribe(self, clip):
        if self.transcribe_error:
            raise self.transcribe_error
        return self.transcript

@pytest.fixture
def settings():
    return Settings(
        database_url="sqlite://",
        litellm_base_url="http://llm.test",
        cep_base_url="https://viacep.test",
        public_base_url="https://loja.test",
    )

@pytest.fixture
def session_factory():
    factory = create_session_factory(
        "sqlite://", poolclass=StaticPool, connect_args={"check_same_thread": False},
    )
    Base.metadata.create_all(factory.kw["bind"])
    yield factory
    factory.kw["bind"].dispose()

@pytest.fixture
def cep_requests():
    return []

@pytest.fixture
def cep_transport(cep_requests):
    def handler(request: httpx.Request) -> httpx.Response:
        cep_requests.append(str(request.url))
        if "/ws/01001000/" in request.url.path:
            return httpx.Response(200, json=VIACEP_SE)
        if "/ws/99999999/" in request.url.path:
            return httpx.Response(200, json={"erro": True})
        if "/ws/88888888/" in request.url.path:
            raise httpx.ConnectTimeout("timeout", request=request)
        return httpx.Response(404)
    return httpx.MockTransport(handler)

@pytest.fixture
def llm():
    return FakeLLM()

@pytest.fixture(autouse=True)
def container(settings, session_factory, cep_transport, llm):
    di[Settings] = settings
    di["session_factory"] = lambda _di: session_factory
    di[LLMClient] = llm
    di[ViaCepClient] = ViaCepClient(settings, transport=cep_transport)
    di[PromptBuilder] = PromptBuilder()
    yield di

@pytest.fixture
def tenant(session_factory):
    with session_factory() as s, s.begin():
        company = Company(name="Loja Teste", segment="eletrônicos")
        s.add(company)
        s.flush()
        s.add(AgentConfig(company_id=company.id, name="Vitória", tone_of_voice="Empático",
                          sales_goals="Aumentar o ticket médio"))
        widget_a = Product(company_id=company.id, name="Widget A", description="O widget mais vendido da loja.",
                           price=1000, image_urls=["/uploads/widget-a.png", "/uploads/widget-a-2.png"])
        widget_b = Product(company_id=company.id, name="Widget B", description="Versão compacta.",
                           price=2500, image_urls=[])
        draft = Product(company_id=company.id, name="Gadget Rascunho", price=500, status="draft",
                        image_urls=["/uploads/g.png"])
        inactive = Product(company_id=company.id, name="Gadget Antigo", price=700, is_active=False,
                           image_urls=["/uploads/old.png"])
        s.add_all([widget_a, widget_b, draft, inactive])
        s.flush()
        ids = SimpleNamespace(
            company_id=company.id,
            widget_a=widget_a.id,
            widget_b=widget_b.id,
            draft=draft.id,
            inactive=inactive.id,
        )
    return ids

@pytest.fixture
def other_tenant(session_factory):
    with session_factory() as s, s.begin():
        company = Company(name="Outra Loja")
        s.add(company)
        s.flush()
        return company.id

@pytest.fixture
def conversation(tenant):
    from vitrine_bot.repo import repo
    return repo.create_conversation(tenant.company_id, "chatweb", customer_name="Ana")
