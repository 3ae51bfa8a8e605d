import os

# Environment variable -> EnginePolicy field. Unset values keep the policy default.
ENGINE_POLICY_ENV = {
    "GRACE_MINUTES": "grace_minutes",
    "LATE_CHECKOUT_MINUTES": "late_checkout_minutes",
    "LATENESS_CUTOFF": "lateness_cutoff",
    "TEE_WINDOW_DAYS": "tee_window_days",
    "MISSING_PUNCH_OUT_CREDIT_HOURS": "missing_punch_out_credit_hours",
    "RESOLVER_INTERVAL_MINUTES": "resolver_interval_minutes",
    "BATCH_SIZE": "batch_size",
    "MAX_SHIFT_HOURS": "max_shift_hours",
    "DEFAULT_SHIFT_START": "default_shift_start",
    "DEFAULT_SHIFT_END": "default_shift_end",
    "BIOMETRIC_CAPACITY": "biometric_capacity",
    "HEALTH_WARNING_RATE": "health_warning_rate",
    "HEALTH_CRITICAL_RATE": "health_critical_rate",
    "METRICS_CACHE_TTL_SECONDS": "metrics_cache_ttl_seconds",
}


def engine_policy_from_env() -> dict:
    return {field: os.getenv(var) for var, field in ENGINE_POLICY_ENV.items() if os.getenv(var)}


def get_settings_module() -> str:
    env = os.getenv("APP_ENV", "development").lower()

    if env in {"prod", "production"}:
        return "config.production"

    if env in {"test", "testing"}:
        return "config.testing"

    return "config.development"
