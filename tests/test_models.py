"""Tests for conversation records, counters and status ordering.

Run:
    uv run pytest tests/test_models.py -v
"""

from interview_voice.models import (
    InterviewStatus,
    Role,
    SessionCounters,
    TurnMessage,
)


class TestRunningScore:
    def test_first_score_sets_running_score(self):
        counters = SessionCounters()
        assert counters.record_score(7) == 7
        assert counters.running_score == 7.0

    def test_second_score_averages(self):
        counters = SessionCounters()
        counters.record_score(7)
        assert counters.record_score(9) == 8.0

    def test_zero_counts(self):
        counters = SessionCounters()
        counters.record_score(0)
        assert counters.running_score == 0.0
        assert counters.record_score(10) == 5.0


class TestInterviewStatus:
    def test_moves_forward(self):
        assert InterviewStatus.NOT_STARTED.advance(InterviewStatus.IN_PROGRESS) is (
            InterviewStatus.IN_PROGRESS
        )
        assert InterviewStatus.IN_PROGRESS.advance(InterviewStatus.COMPLETED) is (
            InterviewStatus.COMPLETED
        )

    def test_never_moves_backward(self):
        assert InterviewStatus.COMPLETED.advance(InterviewStatus.IN_PROGRESS) is (
            InterviewStatus.COMPLETED
        )
        assert InterviewStatus.IN_PROGRESS.advance(InterviewStatus.NOT_STARTED) is (
            InterviewStatus.IN_PROGRESS
        )

    def test_wire_values(self):
        assert InterviewStatus("completed") is InterviewStatus.COMPLETED
        assert InterviewStatus.IN_PROGRESS.value == "in_progress"


class TestTurnMessage:
    def test_placeholder(self):
        p = TurnMessage.placeholder()
        assert p.pending is True
        assert p.role is Role.INTERVIEWER
        assert p.content == ""

    def test_to_dict_omits_missing_feedback_and_score(self):
        d = TurnMessage(role=Role.CANDIDATE, content="hi").to_dict()
        assert d == {"role": "candidate", "content": "hi", "pending": False}

    def test_to_dict_keeps_zero_score(self):
        d = TurnMessage(role=Role.INTERVIEWER, content="ok", feedback="f", score=0).to_dict()
        assert d["score"] == 0
        assert d["feedback"] == "f"
