"""aurafi.core.config

Two config surfaces only:
1) `config/default.yaml` + `config/presets/*.yaml`
2) Environment variables (`AURAFI_` prefix, `__` for nesting)

Values are human decimals here. The vault converts them to WAD integers once
(see :class:`aurafi.vault.params.VaultParams`).
"""

from __future__ import annotations

from decimal import Decimal
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator
from pydantic_settings import BaseSettings

from aurafi import A_MAX, A_REF
from aurafi.core.exceptions import ConfigError


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    result: dict[str, Any] = dict(base)
    for k, v in overlay.items():
        if k in result and isinstance(result[k], dict) and isinstance(v, dict):
            result[k] = _deep_merge(result[k], v)
        else:
            result[k] = v
    return result


def _fraction(v: Decimal) -> Decimal:
    if v < 0 or v > 1:
        raise ValueError(f"must be within [0, 1], got {v}")
    return v


class PegConfig(BaseModel):
    """peg(aura) = clamp(base_price * (1 + k*(aura/a_ref - 1)), p_min, p_max)."""

    base_price: Decimal = Decimal("1.0")
    peg_sensitivity: Decimal = Decimal("0.5")
    p_min: Decimal = Decimal("0.5")
    p_max: Decimal = Decimal("1.5")
    a_ref: int = A_REF
    aura_max: int = A_MAX

    @field_validator("a_ref")
    @classmethod
    def a_ref_must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("a_ref must be >= 1")
        return v

    @model_validator(mode="after")
    def band_must_be_ordered(self) -> PegConfig:
        if self.p_min <= 0:
            raise ValueError("p_min must be > 0")
        if self.p_min > self.p_max:
            raise ValueError(f"p_min ({self.p_min}) must not exceed p_max ({self.p_max})")
        return self


class SupplyConfig(BaseModel):
    supply_sensitivity: Decimal = Decimal("0.75")
    floor_multiple: Decimal = Decimal("0.25")
    ceiling_multiple: Decimal = Decimal("4")

    @model_validator(mode="after")
    def band_must_be_ordered(self) -> SupplyConfig:
        if self.floor_multiple > self.ceiling_multiple:
            raise ValueError("floor_multiple must not exceed ceiling_multiple")
        return self


class CollateralConfig(BaseModel):
    min_cr: Decimal = Decimal("1.5")
    liq_cr: Decimal = Decimal("1.2")
    mint_fee: Decimal = Decimal("0.005")

    @field_validator("mint_fee")
    @classmethod
    def fee_is_fraction(cls, v: Decimal) -> Decimal:
        return _fraction(v)

    @model_validator(mode="after")
    def liquidation_below_minimum(self) -> CollateralConfig:
        if self.liq_cr >= self.min_cr:
            raise ValueError(f"liq_cr ({self.liq_cr}) must be below min_cr ({self.min_cr})")
        return self


class ContractionConfig(BaseModel):
    grace_period_seconds: int = 86_400
    default_batch_owners: int = 50

    @field_validator("grace_period_seconds", "default_batch_owners")
    @classmethod
    def must_be_positive(cls, v: int) -> int:
        if v <= 0:
            raise ValueError("must be >= 1")
        return v


class LiquidationConfig(BaseModel):
    min_payment: Decimal = Decimal("0.01")
    bounty_pct: Decimal = Decimal("0.01")
    penalty_pct: Decimal = Decimal("0.10")
    penalty_cap_pct: Decimal = Decimal("0.20")

    @field_validator("bounty_pct", "penalty_pct", "penalty_cap_pct")
    @classmethod
    def pct_is_fraction(cls, v: Decimal) -> Decimal:
        return _fraction(v)


class OracleConfig(BaseModel):
    base_url: str = "http://127.0.0.1:8545"
    timeout_s: float = 5.0


class LoggingConfig(BaseModel):
    level: str = "INFO"
    json_output: bool = False


class Config(BaseSettings):
    """Root configuration. Single source of truth."""

    data_dir: Path = Path("data")
    config_dir: Path = Path("config")

    preset: Literal["balanced", "conservative", "custom"] = "balanced"

    peg: PegConfig = Field(default_factory=PegConfig)
    supply: SupplyConfig = Field(default_factory=SupplyConfig)
    collateral: CollateralConfig = Field(default_factory=CollateralConfig)
    contraction: ContractionConfig = Field(default_factory=ContractionConfig)
    liquidation: LiquidationConfig = Field(default_factory=LiquidationConfig)
    oracle: OracleConfig = Field(default_factory=OracleConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    model_config = {"env_prefix": "AURAFI_", "env_nested_delimiter": "__"}

    @property
    def journal_path(self) -> Path:
        return self.data_dir / "journal.sqlite"

    @classmethod
    def from_yaml(cls, path: Path) -> Config:
        if not path.exists():
            raise ConfigError(f"Config file not found: {path}")

        try:
            raw = yaml.safe_load(path.read_text()) or {}
        except yaml.YAMLError as e:
            raise ConfigError(f"Config file is not valid YAML: {path}") from e

        preset_name = raw.get("preset", "balanced")
        preset_path = path.parent / "presets" / f"{preset_name}.yaml"
        if preset_path.exists():
            preset_data = yaml.safe_load(preset_path.read_text()) or {}
            raw = _deep_merge(preset_data, raw)

        return cls(**raw)

    @classmethod
    def from_repo_defaults(cls, repo_root: Path | None = None) -> Config:
        root = repo_root or Path.cwd()
        return cls.from_yaml(root / "config" / "default.yaml")

    @classmethod
    def from_preset(
        cls,
        preset: Literal["balanced", "conservative"],
        *,
        repo_root: Path | None = None,
    ) -> Config:
        root = repo_root or Path.cwd()
        default_path = root / "config" / "default.yaml"
        raw = yaml.safe_load(default_path.read_text()) or {}
        raw["preset"] = preset
        preset_path = default_path.parent / "presets" / f"{preset}.yaml"
        if not preset_path.exists():
            raise ConfigError(f"Preset not found: {preset_path}")
        preset_data = yaml.safe_load(preset_path.read_text()) or {}
        raw = _deep_merge(preset_data, raw)
        return cls(**raw)
