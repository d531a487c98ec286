"""Unit tests for history pairing and conversion."""
import math

from hypothesis import given
from hypothesis import strategies as st

from console_buddy.conversation import (
    ConversationTurn,
    Role,
    commit_turn,
    from_strings,
    pair_history,
    to_chat_messages,
    to_strings,
)


class TestPairHistory:
    """Tests for pair_history."""

    def test_empty_history_has_no_pairs(self):
        assert pair_history([]) == []

    def test_even_history_pairs_by_position(self):
        history = from_strings(["hi", "hello", "list files", "a.txt b.txt"])

        assert pair_history(history) == [("hi", "hello"), ("list files", "a.txt b.txt")]

    def test_odd_history_gets_empty_model_text(self):
        """Test that a dangling user entry is paired with an empty reply."""
        history = from_strings(["hi", "hello", "are you there?"])

        assert pair_history(history)[-1] == ("are you there?", "")

    @given(st.lists(st.text(max_size=20), max_size=30))
    def test_pair_count_is_half_rounded_up(self, entries: list[str]):
        """Property test: n entries give ceil(n/2) pairs."""
        pairs = pair_history(from_strings(entries))

        assert len(pairs) == math.ceil(len(entries) / 2)
        flattened = [text for pair in pairs for text in pair]
        assert flattened[:len(entries)] == entries


class TestToChatMessages:
    """Tests for the provider-neutral message conversion."""

    def test_roles_alternate_user_then_model(self):
        messages = to_chat_messages(from_strings(["q1", "a1", "q2", "a2"]))

        assert [m.role for m in messages] == ["user", "model", "user", "model"]
        assert [m.content for m in messages] == ["q1", "a1", "q2", "a2"]

    @given(st.lists(st.text(max_size=10), max_size=15))
    def test_message_count_is_always_even(self, entries: list[str]):
        messages = to_chat_messages(from_strings(entries))

        assert len(messages) == 2 * math.ceil(len(entries) / 2)


class TestCommitTurn:
    """Tests for commit_turn."""

    def test_appends_user_and_model_turns(self):
        history = from_strings(["hi", "hello"])

        updated = commit_turn(history, "bye", "see you")

        assert to_strings(updated) == ["hi", "hello", "bye", "see you"]
        assert updated[-2].role == Role.USER
        assert updated[-1].role == Role.MODEL

    def test_does_not_mutate_input(self):
        history = [ConversationTurn(role=Role.USER, text="hi")]

        commit_turn(history, "again", "ok")

        assert len(history) == 1

    def test_empty_input_is_committed(self):
        updated = commit_turn([], "", "You sent an empty message.")

        assert to_strings(updated) == ["", "You sent an empty message."]
