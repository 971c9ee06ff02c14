import pytest

from vitrine_bot.adk.analyzer import AnalysisResult, ConversationAnalyzer
from vitrine_bot.adk.specialists import select_specialist
from vitrine_bot.ports.interfaces import MessageDTO
from vitrine_bot.repo import repo

def _turns(n):
    return [
        MessageDTO(id=i, conversation_id="c", role="user" if i % 2 else "assistant", content=f"msg {i}")
        for i in range(1, n + 1)
    ]

def test_clamps_scores(llm):
    llm.analysis = {"intent": "purchase", "sentiment": -250, "complexity": 180.4, "suggestedAgent": "consultant"}
    result = ConversationAnalyzer(llm).classify(_turns(2))
    assert (result.sentiment, result.complexity, result.suggested_agent) == (-100, 100, "consultant")

def test_optional_scores_default(llm):
    llm.analysis = {"intent": "question", "suggestedAgent": "technical"}
    result = ConversationAnalyzer(llm).classify(_turns(1))
    assert (result.sentiment, result.complexity) == (0, 30)

@pytest.mark.parametrize("analysis", [
    RuntimeError("gateway down"),
    {"sentiment": 10, "complexity": 10, "suggestedAgent": "support"},
    {"intent": "purchase", "sentiment": 10},
    {"intent": "purchase", "suggestedAgent": "seller", "sentiment": "muito"},
])
def test_falls_back_to_default_classification(llm, analysis):
    llm.analysis = analysis
    result = ConversationAnalyzer(llm).classify(_turns(3))
    assert (result.intent, result.sentiment, result.complexity, result.suggested_agent) == ("browsing", 0, 30, "seller")

def test_unknown_agent_becomes_seller(llm):
    llm.analysis = {"intent": "purchase", "suggestedAgent": "pirate"}
    assert ConversationAnalyzer(llm).classify(_turns(1)).suggested_agent == "seller"
    assert select_specialist("pirate").key == "seller"
    assert select_specialist(None).key == "seller"
    assert select_specialist("Support").key == "support"

def test_uses_last_six_turns(llm):
    ConversationAnalyzer(llm).classify(_turns(9))
    prompt = llm.json_calls[-1]["user"]
    assert "msg 3" not in prompt
    assert "Atendente: msg 4" in prompt
    assert "Cliente: msg 9" in prompt

def test_analyze_persists_classification(llm, conversation):
    llm.analysis = {"intent": "complaint", "sentiment": -60, "complexity": 75, "suggestedAgent": "support"}
    ConversationAnalyzer(llm).analyze(conversation.id, _turns(2))
    conv = repo.get_conversation(conversation.id)
    assert conv.current_intent == "complaint"
    assert conv.sentiment_score == -60
    assert conv.complexity_score == 75
    assert conv.active_agent_type == "support"
    assert conv.analysis_updated_at is not None
    [event] = repo.list_events(conversation.id, "analysis")
    assert event.data["suggestedAgent"] == "support"

def test_analysis_result_accepts_alias_and_name():
    a = AnalysisResult.model_validate({"intent": "x", "suggestedAgent": "seller"})
    b = AnalysisResult(intent="x", suggested_agent="seller")
    assert a == b
