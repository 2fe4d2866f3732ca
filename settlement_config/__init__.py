"""
settlement_config -- single public entrypoint for settlement settings.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_settings()``. Returns a frozen ``SettlementSettings``.
    YAML loading and validation are internal to this package.

Architecture position:
    Configuration -- sits above ``settlement_kernel`` and below
    ``settlement_services``. Neither the kernel nor the engines import
    from ``settlement_config``; services pass precision and rounding into
    the engines explicitly.

Invariants enforced:
    - Single entrypoint: all runtime settings flow through
      ``get_active_settings()``.
    - Settings that fail validation are never returned.
    - Deterministic identity: the same YAML always yields the same
      checksum.

Failure modes:
    - ``FileNotFoundError`` -- the override path does not exist.
    - ``yaml.YAMLError`` -- the file is not valid YAML.
    - ``InvalidSettingsError`` -- missing keys or validation errors.

Audit relevance:
    Every successful ``get_active_settings()`` call emits a
    ``SETTLEMENT_CONFIG_TRACE`` log entry with the settings id, version
    and checksum, tying each submitted payment back to the settings that
    governed its rounding and bank resolution.
"""

from __future__ import annotations

from pathlib import Path

from settlement_config.loader import load_yaml_file, parse_settings
from settlement_config.schema import BankDef, PaymentModeDef, SettlementSettings
from settlement_config.validator import validate_settings
from settlement_kernel.exceptions import InvalidSettingsError
from settlement_kernel.logging_config import get_logger

_logger = get_logger("config")

# Packaged default settings
DEFAULT_SETTINGS_PATH = Path(__file__).parent / "defaults" / "settlement.yaml"


def get_active_settings(config_path: Path | str | None = None) -> SettlementSettings:
    """The ONLY public settings entrypoint.

    Guarantees:
        - The returned settings passed validation.
        - A ``SETTLEMENT_CONFIG_TRACE`` log entry is emitted on every
          successful call.

    Non-goals:
        - No caching; callers hold the returned settings for as long as
          they need them.

    Args:
        config_path: Override path to a settings YAML file. Defaults to
            the packaged ``defaults/settlement.yaml``.

    Raises:
        FileNotFoundError: If ``config_path`` does not exist.
        InvalidSettingsError: If the document is incomplete or invalid.
    """
    path = Path(config_path) if config_path is not None else DEFAULT_SETTINGS_PATH
    data = load_yaml_file(path)

    try:
        settings = parse_settings(data)
    except KeyError as exc:
        raise InvalidSettingsError(str(path), [f"Missing required key: {exc.args[0]}"]) from exc
    except (TypeError, ValueError) as exc:
        raise InvalidSettingsError(str(path), [str(exc)]) from exc

    validation = validate_settings(settings)
    if not validation.is_valid:
        raise InvalidSettingsError(str(path), validation.errors)

    _logger.info(
        "SETTLEMENT_CONFIG_TRACE",
        extra={
            "trace_type": "SETTLEMENT_CONFIG_TRACE",
            "settings_id": settings.settings_id,
            "settings_version": settings.version,
            "checksum": settings.checksum,
            "source": str(path),
            "payment_mode_count": len(settings.payment_modes),
            "bank_count": len(settings.banks),
        },
    )
    return settings


__all__ = [
    "BankDef",
    "DEFAULT_SETTINGS_PATH",
    "PaymentModeDef",
    "SettlementSettings",
    "get_active_settings",
]
