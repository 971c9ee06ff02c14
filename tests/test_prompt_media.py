from vitrine_bot.adk.analyzer import AnalysisResult
from vitrine_bot.adk.media import MediaAnnotator
from vitrine_bot.adk.specialists import select_specialist
from vitrine_bot.core.catalog import load_snapshot
from vitrine_bot.core.context import build_llm_history, resolve_media_url
from vitrine_bot.core.prompting import DEFAULT_RESPONSE_STYLE, PromptBuilder, TONES
from vitrine_bot.ports.interfaces import MessageDTO
from vitrine_bot.repo import repo

def _prompt(agent=None, suggested="seller", sentiment=0, complexity=30, has_history=False):
    analysis = AnalysisResult(intent="purchase", suggestedAgent=suggested, sentiment=sentiment, complexity=complexity)
    return PromptBuilder().sales_system(
        agent=agent, company_name="Loja Teste", specialist=select_specialist(suggested),
        analysis=analysis, has_history=has_history, catalog_text="- [Widget A]: R$ 10,00 (id: p1)",
    )

class _Agent:
    name = "Vitória"
    tone_of_voice = "Divertido"
    custom_instructions = "Nunca ofereça desconto."
    response_style = None
    sales_goals = "Aumentar o ticket médio"
    product_focus_strategy = None

def test_prompt_sections_in_order():
    text = _prompt(agent=_Agent())
    markers = ["Vitória", TONES["Divertido"], "PAPEL ATUAL: Vendedor", "ANÁLISE DA CONVERSA",
               "Nunca ofereça desconto.", DEFAULT_RESPONSE_STYLE, "Cumprimente uma única vez",
               "FUNIL DE VENDAS", "- [Widget A]: R$ 10,00"]
    positions = [text.index(m) for m in markers]
    assert positions == sorted(positions)
    assert "Aumentar o ticket médio" in text

def test_prompt_defaults_without_agent_config():
    text = _prompt(agent=None, suggested="consultant")
    assert "Assistente" in text
    assert TONES["Profissional"] in text
    assert "PAPEL ATUAL: Consultor" in text
    assert "Metas de vendas" not in text

def test_prompt_warnings_follow_thresholds():
    assert "conversa complexa" in _prompt(complexity=70)
    assert "conversa complexa" not in _prompt(complexity=69)
    assert "insatisfeito" in _prompt(sentiment=-40)
    assert "insatisfeito" not in _prompt(sentiment=-39)

def test_prompt_history_rule():
    assert "NÃO repita a saudação" in _prompt(has_history=True)
    assert "NÃO repita a saudação" not in _prompt(has_history=False)

def _msg(i, role, content, metadata=None):
    return MessageDTO(id=i, conversation_id="c", role=role, content=content, metadata=metadata)

def test_history_window_roles_and_product_cards():
    messages = [_msg(i, "user" if i % 2 else "assistant", f"m{i}") for i in range(1, 15)]
    messages.append(_msg(15, "assistant", "card", {"kind": "product_image", "product_id": "p", "name": "n",
                                                   "image_url": "u"}))
    messages.append(_msg(16, "operator", "oi, aqui é o João"))
    history = build_llm_history(messages, window=10, public_base_url="https://loja.test")
    assert len(history) == 10
    assert history[-1] == {"role": "assistant", "content": "oi, aqui é o João"}
    assert all(h["content"] != "card" for h in history)
    assert history[0]["content"] == "m6"

def test_history_image_turn_is_multimodal():
    messages = [_msg(1, "user", "gostei desse", {"kind": "image", "image_url": "/uploads/foto.png"})]
    [turn] = build_llm_history(messages, window=10, public_base_url="https://loja.test/")
    assert turn["content"] == [
        {"type": "text", "text": "gostei desse"},
        {"type": "image_url", "image_url": {"url": "https://loja.test/uploads/foto.png"}},
    ]

def test_resolve_media_url_keeps_absolute():
    assert resolve_media_url("https://cdn.test/a.png", "https://loja.test") == "https://cdn.test/a.png"
    assert resolve_media_url("uploads/a.png", "https://loja.test") == "https://loja.test/uploads/a.png"

def test_media_annotator(tenant, conversation):
    snap = load_snapshot(tenant.company_id)
    media = MediaAnnotator().annotate(conversation.id, "Recomendo o [Widget A], o [Widget B] e o [Nonexistent].", snap)
    assert len(media) == 1
    meta = media[0].metadata
    assert meta["kind"] == "product_image"
    assert meta["product_id"] == tenant.widget_a
    assert meta["image_url"] == "/uploads/widget-a.png"
    assert meta["has_more_images"] is True
    assert media[0].content.startswith("Widget A - R$ 10,00")
    assert [m.id for m in repo.list_messages(conversation.id)] == [media[0].id]

def test_media_annotator_ignores_unknown_tokens(tenant, conversation):
    snap = load_snapshot(tenant.company_id)
    assert MediaAnnotator().annotate(conversation.id, "Veja o [Nonexistent]", snap) == []
    assert repo.list_messages(conversation.id) == []
