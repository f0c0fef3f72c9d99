from paynews.adapters.mock_adapter import MockAdapter
from paynews.services.chat import ChatSession


def test_blank_input_is_ignored():
    session = ChatSession(MockAdapter())
    assert session.send("   ") is None
    assert session.messages == []


def test_reply_is_appended_after_user_message():
    session = ChatSession(MockAdapter())

    reply = session.send("  Any news on Plaid? ")

    assert [m.role for m in session.messages] == ["user", "assistant"]
    assert session.messages[0].content == "Any news on Plaid?"
    assert "Any news on Plaid?" in reply.content
    assert reply.label == "AI"
    assert session.error is None


def test_failure_is_recorded_as_error_message():
    session = ChatSession(None)

    reply = session.send("hello")

    assert reply.role == "error"
    assert reply.content.startswith("Error: Chat API error: 500")
    assert session.error.startswith("Chat API error: 500")


def test_error_clears_on_next_success():
    session = ChatSession(None)
    session.send("hello")
    session.adapter = MockAdapter()
    session.send("again")
    assert session.error is None
    assert [m.role for m in session.messages] == ["user", "error", "user", "assistant"]
