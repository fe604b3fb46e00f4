from timetabler.core.config import Settings


def test_engine_knobs_from_environment(monkeypatch):
    monkeypatch.setenv("SCHEDULER_LAB_GROUP_SIZE", "25")
    monkeypatch.setenv("SCHEDULER_MAX_CONSTRAINT_CHECKS", "5000")
    monkeypatch.setenv("SCHEDULER_TRACE", "true")

    settings = Settings()

    assert settings.scheduler_lab_group_size == 25
    assert settings.scheduler_max_constraint_checks == 5000
    assert settings.scheduler_trace is True
    assert settings.scheduler_slot_step_minutes == 15


def test_cors_origins_accept_comma_separated_values():
    settings = Settings(cors_origins="https://a.example, https://b.example")

    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_cors_origins_accept_json_list():
    settings = Settings(cors_origins='["https://a.example"]')

    assert settings.cors_origins == ["https://a.example"]
