from parking.config import load_settings


def test_defaults():
    settings = load_settings({})

    assert settings.late_threshold_minutes == 15
    assert settings.auto_cancel_interval_seconds == 60
    assert settings.auto_cancel_stop_timeout_seconds == 5
    assert settings.auto_cancel_enabled is True
    assert settings.smtp_port == 587
    assert settings.smtp_use_tls is True
    assert settings.parking_spot_count == 0
    assert settings.log_level == "INFO"


def test_environment_overrides():
    settings = load_settings(
        {
            "DATABASE_URL": "sqlite:///parking.db",
            "LATE_THRESHOLD_MINUTES": "20",
            "AUTO_CANCEL_INTERVAL_SECONDS": "30",
            "AUTO_CANCEL_ENABLED": "no",
            "SMTP_USE_TLS": "0",
            "PARKING_SPOT_COUNT": "12",
            "LOG_LEVEL": "debug",
        }
    )

    assert settings.database_url == "sqlite:///parking.db"
    assert settings.late_threshold_minutes == 20
    assert settings.auto_cancel_interval_seconds == 30
    assert settings.auto_cancel_enabled is False
    assert settings.smtp_use_tls is False
    assert settings.parking_spot_count == 12
    assert settings.log_level == "DEBUG"
