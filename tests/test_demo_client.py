from demo_client import format_event


def test_format_step_event():
    line = format_event({
        "type": "log",
        "event_type": "workflow_step",
        "timestamp": "2024-05-01T10:15:30.123456",
        "details": {"step": 2, "agent_name": "AuthAgent", "output_intent": "need_balance_info"},
    })

    assert line == "🔄 [10:15:30] workflow_step #2 AuthAgent -> need_balance_info"


def test_format_complete_and_status():
    complete = format_event({
        "type": "log",
        "event_type": "workflow_complete",
        "timestamp": "2024-05-01T10:15:31",
        "details": {"total_steps": 3, "termination": "completed"},
    })

    assert complete.endswith("after 3 steps (completed)")
    assert format_event({"type": "status", "status": "failed"}) == "📋 Run status: failed"
    assert format_event({"type": "waiting", "message": "Waiting"}) == "ℹ️  Waiting"
