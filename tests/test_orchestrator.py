import pytest
from kink import di
from sqlalchemy import select

from conftest import text_reply, tool_call
from vitrine_bot.adk.dialogue import HANDOFF_MESSAGE
from vitrine_bot.adk.orchestrator import EmptyMessage, SalesOrchestrator
from vitrine_bot.adk.tools.sales_tools import ToolDispatcher
from vitrine_bot.ports.interfaces import AudioClip, InboundMessageDTO
from vitrine_bot.repo import repo
from vitrine_bot.repo.models import Order

def _send(tenant, conversation, content="", **kw):
    inbound = InboundMessageDTO(tenant_id=tenant.company_id, conversation_id=conversation.id, content=content, **kw)
    return SalesOrchestrator().handle_inbound(inbound)

def test_end_to_end_purchase(llm, tenant, conversation, cep_requests):
    llm.replies = [
        tool_call("add_to_cart", {"items": [{"name": "Widget A", "quantity": 2}]}),
        text_reply("Coloquei 2 [Widget A] no carrinho. Qual o seu CEP?"),
    ]
    first = _send(tenant, conversation, "Quero 2 Widget A")
    assert first.message.metadata["kind"] == "cart"
    assert first.message.metadata["subtotal_cents"] == 2000
    assert len(first.media) == 1

    llm.replies = [
        tool_call("get_address_by_cep", {"cep": "01001-000"}),
        text_reply("Encontrei: Praça da Sé, São Paulo/SP. Qual o número?"),
    ]
    second = _send(tenant, conversation, "01001000")
    assert second.message.metadata["kind"] == "cep_lookup"
    assert len(cep_requests) == 1

    llm.replies = [
        tool_call("create_order", {
            "customerName": "Ana Souza",
            "customerPhone": "11987654321",
            "shippingAddress": {"street": "Praça da Sé, 100", "neighborhood": "Sé", "city": "São Paulo",
                                "state": "SP", "zip": "01001000"},
            # preço informado pelo modelo é ignorado
            "items": [{"productId": tenant.widget_a, "name": "Widget A", "quantity": 2, "price": 1}],
        }),
        text_reply(""),
    ]
    third = _send(tenant, conversation, "Número 100. Ana Souza, 11987654321")
    meta = third.message.metadata
    assert meta["kind"] == "order_confirmation"
    assert meta["total_cents"] == 2000
    assert meta["confirmation_code"] in third.message.content

    with di["session_factory"]() as s:
        [order] = s.execute(select(Order)).scalars().all()
    assert order.total == 2000
    assert order.status == "pending"
    assert order.conversation_id == conversation.id

    roles = [m.role for m in repo.list_messages(conversation.id)]
    assert roles == ["user", "assistant", "assistant", "user", "assistant", "user", "assistant"]
    assert len(repo.list_events(conversation.id, "llm_turn")) == 3

def test_second_turn_sends_history_and_current_turn(llm, tenant, conversation):
    llm.replies = [text_reply("Olá! Como posso ajudar?")]
    _send(tenant, conversation, "oi")
    llm.replies = [text_reply("Claro!")]
    _send(tenant, conversation, "quero um widget")
    messages = llm.chat_calls[-1]["messages"]
    assert messages[0]["role"] == "system"
    assert "NÃO repita a saudação" in messages[0]["content"]
    assert [m["content"] for m in messages[1:]] == ["oi", "Olá! Como posso ajudar?", "quero um widget"]

@pytest.mark.parametrize("mode", ["human", "hybrid"])
def test_mode_gate_persists_message_without_reply(llm, tenant, conversation, mode):
    repo.take_over(conversation.id, target=mode, operator_id="op-1")
    result = _send(tenant, conversation, "alguém aí?")
    assert result.gated is True
    assert result.message is None and result.media == []
    assert [m.role for m in repo.list_messages(conversation.id)] == ["user"]
    assert llm.chat_calls == [] and llm.json_calls == []
    assert len(repo.list_events(conversation.id, "handoff_gated")) == 1

def test_release_resumes_ai(llm, tenant, conversation):
    repo.take_over(conversation.id, target="human")
    repo.release(conversation.id)
    llm.replies = [text_reply("Voltei!")]
    assert _send(tenant, conversation, "oi").message.content == "Voltei!"

def test_transfer_persists_handoff_message(llm, tenant, conversation):
    llm.replies = [tool_call("transfer_to_human", {"reason": "reclamação", "summary": "produto chegou quebrado"})]
    result = _send(tenant, conversation, "quero falar com um humano")
    assert result.message.content == HANDOFF_MESSAGE
    conv = repo.get_conversation(conversation.id)
    assert conv.needs_human_attention is True
    assert conv.mode == "ai"

def test_empty_message_rejected(tenant, conversation):
    with pytest.raises(EmptyMessage):
        _send(tenant, conversation, "   \x00 ")
    assert repo.list_messages(conversation.id) == []

def test_conversation_of_other_tenant_is_not_found(tenant, other_tenant, conversation):
    inbound = InboundMessageDTO(tenant_id=other_tenant, conversation_id=conversation.id, content="oi")
    with pytest.raises(repo.ConversationNotFound):
        SalesOrchestrator().handle_inbound(inbound)

def test_audio_is_transcribed(llm, tenant, conversation):
    llm.transcript = "quero o widget a"
    llm.replies = [text_reply("Ótima escolha!")]
    _send(tenant, conversation, audio=AudioClip(data=b"fake"))
    [user_msg, _] = repo.list_messages(conversation.id)
    assert user_msg.content == "quero o widget a"

def test_transcription_failure_degrades_to_text(llm, tenant, conversation):
    llm.transcribe_error = RuntimeError("whisper down")
    llm.replies = [text_reply("Oi!")]
    result = _send(tenant, conversation, "oi", audio=AudioClip(data=b"fake"))
    assert result.message.content == "Oi!"
    assert repo.list_messages(conversation.id)[0].content == "oi"

def test_image_message_is_multimodal(llm, tenant, conversation):
    llm.replies = [text_reply("Bonita foto!")]
    _send(tenant, conversation, image_url="/uploads/foto.jpg")
    [user_msg, _] = repo.list_messages(conversation.id)
    assert user_msg.metadata == {"kind": "image", "image_url": "/uploads/foto.jpg"}
    current = llm.chat_calls[0]["messages"][-1]["content"]
    assert current == [{"type": "image_url", "image_url": {"url": "https://loja.test/uploads/foto.jpg"}}]

def test_analysis_failure_does_not_block_turn(llm, tenant, conversation):
    llm.analysis = RuntimeError("json inválido")
    llm.replies = [text_reply("Oi!")]
    assert _send(tenant, conversation, "oi").message.content == "Oi!"
    conv = repo.get_conversation(conversation.id)
    assert (conv.current_intent, conv.active_agent_type) == ("browsing", "seller")

class _FailingFinalizer:
    def finalize(self, **kwargs):
        raise RuntimeError("db down")

def test_tool_crash_becomes_structured_failure(llm, tenant, conversation):
    llm.replies = [
        tool_call("create_order", {
            "customerName": "Ana", "customerPhone": "11987654321",
            "shippingAddress": {"street": "R", "neighborhood": "B", "city": "C", "state": "SP", "zip": "01001000"},
            "items": [{"productId": tenant.widget_a, "quantity": 1}],
        }),
        text_reply("Desculpe, tive um problema ao registrar o pedido. Posso tentar de novo?"),
    ]
    orchestrator = SalesOrchestrator(dispatcher=ToolDispatcher(finalizer=_FailingFinalizer()))
    inbound = InboundMessageDTO(tenant_id=tenant.company_id, conversation_id=conversation.id, content="fechar")
    result = orchestrator.handle_inbound(inbound)

    assert result.message.content.startswith("Desculpe")
    [event] = repo.list_events(conversation.id, "tool_result")
    assert event.data["result"]["error"] == "tool_failed"
    assert llm.chat_calls[1]["messages"][-1]["role"] == "tool"
    with di["session_factory"]() as s:
        assert s.execute(select(Order)).scalars().all() == []
