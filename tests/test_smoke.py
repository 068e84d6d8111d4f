"""Smoke tests for configuration, the scenario runner, validation and export.

Run these first to catch obvious breakage.
"""

import json

import pytest
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'src'))

from pydantic import ValidationError

from tinybank.config.loader import config_from_dict, load_config
from tinybank.config.schema import Config, Step
from tinybank.engine.bank import Bank
from tinybank.engine.errors import InvalidAmount, QuorumNotMet
from tinybank.engine.events import Approval, Transfer
from tinybank.engine.ledger import Ledger
from tinybank.engine.units import format_units, parse_units
from tinybank.reporting.export import events_to_frame, export_csv, export_json, snapshots_to_frame
from tinybank.simulation.chain import Chain, derive_address
from tinybank.simulation.runner import ScenarioError, SimulationResult, SimulationRunner
from tinybank.validation import SanityChecker, SystemInvariantError, assert_invariants


def governance_config() -> Config:
    data = load_config().to_dict()
    data['scenario'] = {
        'description': 'Partial quorum fails, full quorum succeeds',
        'steps': [
            {'action': 'confirm', 'actor': 1},
            {'action': 'confirm', 'actor': 2},
            {'action': 'confirm', 'actor': 3},
            {'action': 'confirm', 'actor': 4},
            {
                'action': 'set_reward_per_block', 'actor': 0, 'amount': '2',
                'expect_revert': 'Not all managers confirmed yet',
            },
            {'action': 'confirm', 'actor': 5},
            {'action': 'set_reward_per_block', 'actor': 0, 'amount': '2'},
        ],
    }
    return config_from_dict(data)


class TestConfigLoading:
    """Smoke tests for configuration loading."""

    def test_load_default_config(self):
        """Config loads without errors."""
        config = load_config()
        assert config is not None
        assert isinstance(config, Config)

    def test_default_deployment_values(self):
        config = load_config()
        assert config.ledger.decimals == 18
        assert config.ledger.initial_mint == 100
        assert config.bank.managers == [1, 2, 3, 4, 5]

    def test_config_hash_is_deterministic(self):
        """Same config produces same hash."""
        assert load_config().compute_hash() == load_config().compute_hash()

    def test_config_hash_changes_with_content(self):
        data = load_config().to_dict()
        data['ledger']['initial_mint'] = 101
        assert config_from_dict(data).compute_hash() != load_config().compute_hash()

    def test_rejects_four_managers(self):
        data = load_config().to_dict()
        data['bank']['managers'] = [1, 2, 3, 4]
        with pytest.raises(ValidationError):
            config_from_dict(data)

    def test_rejects_out_of_range_actor(self):
        data = load_config().to_dict()
        data['scenario']['steps'].append({'action': 'confirm', 'actor': 99})
        with pytest.raises(ValidationError):
            config_from_dict(data)

    def test_rejects_float_amount(self):
        with pytest.raises(ValidationError):
            Step(action='stake', amount=0.5)

    def test_rejects_missing_amount(self):
        with pytest.raises(ValidationError):
            Step(action='withdraw')

    def test_transfer_requires_target(self):
        with pytest.raises(ValidationError):
            Step(action='transfer', amount='1')

    def test_rejects_non_numeric_step_amount(self):
        data = load_config().to_dict()
        data['scenario']['steps'].append({'action': 'transfer', 'amount': 'abc', 'to': 1})
        with pytest.raises(ValidationError):
            config_from_dict(data)

    def test_rejects_negative_reward_per_block(self):
        data = load_config().to_dict()
        data['bank']['reward_per_block'] = '-1'
        with pytest.raises(ValidationError):
            config_from_dict(data)

    @pytest.mark.parametrize("amount", ["NaN", "Infinity", "-0.5", True])
    def test_rejects_non_finite_or_negative_amount(self, amount):
        with pytest.raises(ValidationError):
            Step(action='stake', amount=amount)

    def test_rejects_amount_finer_than_decimals(self):
        data = load_config().to_dict()
        data['ledger']['decimals'] = 2
        data['scenario']['steps'].append({'action': 'stake', 'amount': '0.001'})
        with pytest.raises(ValidationError):
            config_from_dict(data)

    def test_rejects_reward_finer_than_decimals(self):
        data = load_config().to_dict()
        data['ledger']['decimals'] = 0
        data['bank']['reward_per_block'] = '0.5'
        with pytest.raises(ValidationError):
            config_from_dict(data)

    def test_accepts_fractional_amount_within_decimals(self):
        data = load_config().to_dict()
        data['ledger']['decimals'] = 2
        data['bank']['reward_per_block'] = '0.50'
        data['scenario']['steps'].append({'action': 'stake', 'amount': '1.25'})
        config = config_from_dict(data)
        assert config.bank.reward_per_block == '0.50'
        assert config.scenario.steps[-1].amount == '1.25'

    def test_empty_yaml_file_rejected(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        with pytest.raises(ValueError, match="empty"):
            load_config(path)

    def test_non_mapping_yaml_rejected(self, tmp_path):
        path = tmp_path / "list.yaml"
        path.write_text("- ledger\n- bank\n")
        with pytest.raises(ValueError, match="mapping"):
            load_config(str(path))

    def test_loads_explicit_path(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text(json.dumps(load_config().to_dict()))
        assert load_config(path).compute_hash() == load_config().compute_hash()


class TestUnits:
    """Fixed-point conversions."""

    def test_parse_fractional(self):
        assert parse_units("0.5", 18) == 5 * 10 ** 17

    def test_parse_integer(self):
        assert parse_units(106, 18) == 106 * 10 ** 18

    def test_parse_rejects_excess_precision(self):
        with pytest.raises(InvalidAmount):
            parse_units("0.001", 2)

    def test_parse_rejects_negative_and_garbage(self):
        for value in ("-1", "abc", "NaN", 1.5):
            with pytest.raises(InvalidAmount):
                parse_units(value, 18)

    def test_format(self):
        assert format_units(106 * 10 ** 18, 18) == "106"
        assert format_units(5 * 10 ** 17, 18) == "0.5"
        assert format_units(0, 18) == "0"


class TestChain:
    """Execution environment basics."""

    def test_accounts_are_deterministic(self):
        assert Chain(seed="x").accounts == Chain(seed="x").accounts
        assert Chain(seed="x").accounts != Chain(seed="y").accounts

    def test_address_shape(self):
        address = derive_address("seed", 1)
        assert address.startswith("0x") and len(address) == 42

    def test_automine_one_block_per_transaction(self):
        chain = Chain()
        owner, other = chain.accounts[:2]
        ledger = chain.deploy(owner, Ledger, "MyToken", "MT", 18, 100)
        assert chain.height == 1
        receipt = chain.send(owner, ledger, "transfer", 1, other)
        assert receipt.height == 2
        assert chain.height == 2

    def test_distinct_contract_addresses(self):
        chain = Chain()
        owner = chain.accounts[0]
        first = chain.deploy(owner, Ledger, "A", "A", 0, 1)
        second = chain.deploy(owner, Ledger, "B", "B", 0, 1)
        assert first.address != second.address


class TestSimulationRunner:
    """Smoke tests for full scenario replay."""

    def test_run_default_scenario(self):
        """Default scenario completes without errors."""
        result = SimulationRunner(load_config()).run()

        assert isinstance(result, SimulationResult)
        assert len(result.snapshots) == 8  # approve, stake, 5 transfers, withdraw
        assert result.conservation_errors == []
        assert result.failures == []

    def test_default_scenario_reward(self):
        """Stake, five transfers, withdraw: 100 + 5 + 1 MT."""
        result = SimulationRunner(load_config()).run()

        assert result.final_metrics['final_balances']['account_0'] == 106 * 10 ** 18
        assert result.final_metrics['rewards_minted'] == 6 * 10 ** 18
        assert result.final_metrics['final_total_staked'] == 0
        assert result.final_metrics['final_bank_custody'] == 0

    def test_receipts_cover_deploy_and_wiring(self):
        result = SimulationRunner(load_config()).run()
        methods = [r.method for r in result.receipts]
        assert methods[:3] == ['<deploy>', '<deploy>', 'set_manager']
        assert len(result.receipts) == 11
        assert result.final_metrics['final_height'] == 11

    def test_deterministic(self):
        first = SimulationRunner(load_config()).run()
        second = SimulationRunner(load_config()).run()
        assert first.final_metrics == second.final_metrics

    def test_governance_scenario(self):
        result = SimulationRunner(governance_config()).run()

        assert result.final_metrics['final_reward_per_block'] == 2 * 10 ** 18
        assert result.failures == [
            {'step': 4, 'action': 'set_reward_per_block', 'reason': 'Not all managers confirmed yet'}
        ]
        assert result.snapshots[4].reverted == 'Not all managers confirmed yet'
        assert result.snapshots[-1].confirmations == 0

    def test_unexpected_revert_propagates(self):
        data = load_config().to_dict()
        data['scenario']['steps'] = [{'action': 'set_reward_per_block', 'actor': 0, 'amount': '2'}]
        with pytest.raises(QuorumNotMet):
            SimulationRunner(config_from_dict(data)).run()

    def test_expected_revert_that_succeeds(self):
        data = load_config().to_dict()
        data['scenario']['steps'] = [
            {'action': 'confirm', 'actor': 1, 'expect_revert': 'You are not one of managers'},
        ]
        with pytest.raises(ScenarioError):
            SimulationRunner(config_from_dict(data)).run()

    def test_manual_mining_scenario(self):
        data = load_config().to_dict()
        data['chain']['automine'] = False
        data['scenario']['steps'] = [
            {'action': 'approve', 'actor': 0, 'to': 'bank', 'amount': '50'},
            {'action': 'stake', 'actor': 0, 'amount': '50'},
            {'action': 'mine', 'blocks': 4},
            {'action': 'withdraw', 'actor': 0, 'amount': '50'},
        ]
        result = SimulationRunner(config_from_dict(data)).run()
        assert result.final_metrics['final_balances']['account_0'] == 104 * 10 ** 18


class TestValidation:
    """Invariant checks detect corrupted state."""

    def _deploy(self, wire: bool = True):
        chain = Chain()
        owner = chain.accounts[0]
        ledger = chain.deploy(owner, Ledger, "MyToken", "MT", 18, 100)
        bank = chain.deploy(owner, Bank, ledger, owner, chain.accounts[1:6], clock=chain.block_height)
        if wire:
            chain.send(owner, ledger, "set_manager", bank.address)
        return chain, ledger, bank

    def test_clean_state_passes(self):
        _, ledger, bank = self._deploy()
        assert SanityChecker(ledger, bank).run_all_checks() == []

    def test_detects_conservation_break(self):
        chain, ledger, bank = self._deploy()
        ledger.state.balances[chain.accounts[3]] = 1
        warnings = SanityChecker(ledger, bank).check_ledger()
        assert [w.category for w in warnings] == ['conservation']
        with pytest.raises(SystemInvariantError):
            assert_invariants(ledger, bank)

    def test_detects_custody_shortfall(self):
        _, ledger, bank = self._deploy()
        bank.state.book.total_staked = 5
        categories = {w.category for w in SanityChecker(ledger, bank).check_bank()}
        assert categories == {'accounting', 'custody'}

    def test_warns_when_unwired(self):
        _, ledger, bank = self._deploy(wire=False)
        warnings = SanityChecker(ledger, bank).run_all_checks()
        assert [(w.severity, w.category) for w in warnings] == [('warning', 'wiring')]
        assert_invariants(ledger, bank)


class TestExport:
    """CSV and JSON export."""

    def test_snapshot_frame_keeps_exact_amounts(self):
        result = SimulationRunner(load_config()).run()
        df = snapshots_to_frame(result)
        assert len(df) == len(result.snapshots)
        assert df['balance_account_0'].iloc[-1] == 106 * 10 ** 18

    def test_export_csv(self, tmp_path):
        result = SimulationRunner(load_config()).run()
        path = tmp_path / "run.csv"
        export_csv(result, str(path))
        lines = path.read_text().splitlines()
        assert lines[0].startswith("step,action,height")
        assert len(lines) == len(result.snapshots) + 1

    def test_export_json(self, tmp_path):
        result = SimulationRunner(load_config()).run()
        path = tmp_path / "run.json"
        export_json(result, str(path))
        data = json.loads(path.read_text())
        assert data['config_hash'] == result.config.compute_hash()
        assert data['final_metrics']['final_balances']['account_0'] == 106 * 10 ** 18
        assert data['receipts'][2]['method'] == 'set_manager'

    def test_events_frame(self):
        events = [Transfer("0xa", "0xb", 5), Approval("0xc", 7)]
        df = events_to_frame(events)
        assert list(df['event']) == ['Transfer', 'Approval']
        assert df['amount'].tolist() == [5, 7]
