from __future__ import annotations

import shutil
import sys
from collections.abc import Callable
from pathlib import Path

import pytest

# pytest may run without installing the project; ensure repo root is importable.
REPO_ROOT = Path(__file__).resolve().parents[1]
if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from aurafi.core.config import Config  # noqa: E402
from aurafi.core.fixed_point import WAD  # noqa: E402
from aurafi.integrations.oracle import StaticOracle  # noqa: E402
from aurafi.integrations.settlement import FeeAccumulator, PayoutLedger  # noqa: E402
from aurafi.vault.params import VaultParams  # noqa: E402
from aurafi.vault.stages import StageTable  # noqa: E402
from aurafi.vault.vault import CreatorVault  # noqa: E402
from tests.unit._vault_helpers import CREATOR, LEDGER, FakeClock  # noqa: E402


@pytest.fixture()
def temp_dir(tmp_path: Path) -> Path:
    return tmp_path


@pytest.fixture()
def test_config(temp_dir: Path) -> Config:
    """Config fixture that points data_dir to a temp directory."""

    cfg_src = REPO_ROOT / "config" / "default.yaml"
    cfg_dst_dir = temp_dir / "config"
    cfg_dst_dir.mkdir(parents=True, exist_ok=True)

    shutil.copy2(cfg_src, cfg_dst_dir / "default.yaml")
    shutil.copytree(REPO_ROOT / "config" / "presets", cfg_dst_dir / "presets")

    c = Config.from_yaml(cfg_dst_dir / "default.yaml")
    return c.model_copy(update={"data_dir": temp_dir / "data", "config_dir": cfg_dst_dir})


@pytest.fixture()
def params(test_config: Config) -> VaultParams:
    return VaultParams.from_config(test_config)


@pytest.fixture()
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture()
def oracle() -> StaticOracle:
    return StaticOracle({LEDGER: 100})


@pytest.fixture()
def fees() -> FeeAccumulator:
    return FeeAccumulator()


@pytest.fixture()
def payouts() -> PayoutLedger:
    return PayoutLedger()


@pytest.fixture()
def stage_table() -> StageTable:
    # stage: (cumulative stake, mint cap)
    return StageTable.from_rows(
        [
            (10 * WAD, 1_000 * WAD),
            (50 * WAD, 5_000 * WAD),
            (100 * WAD, 10_000 * WAD),
        ]
    )


@pytest.fixture()
def make_vault(
    params: VaultParams,
    oracle: StaticOracle,
    stage_table: StageTable,
    clock: FakeClock,
    fees: FeeAccumulator,
    payouts: PayoutLedger,
) -> Callable[..., CreatorVault]:
    def _make(*, base_cap: int = 1_000 * WAD, **overrides: object) -> CreatorVault:
        kwargs: dict[str, object] = {
            "ledger_id": LEDGER,
            "creator": CREATOR,
            "symbol": "AURA",
            "oracle": oracle,
            "stage_table": stage_table,
            "base_cap": base_cap,
            "params": params,
            "fee_sink": fees,
            "payouts": payouts,
            "clock": clock,
        }
        kwargs.update(overrides)
        return CreatorVault.open(**kwargs)  # type: ignore[arg-type]

    return _make


@pytest.fixture()
def vault(make_vault: Callable[..., CreatorVault]) -> CreatorVault:
    """Stage-1 vault, 10 native of creator stake, aura 100."""

    v = make_vault()
    v.bootstrap(CREATOR, 10 * WAD)
    return v
