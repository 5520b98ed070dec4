"""
Test suite for configuration and command-line handling.
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from pydantic import ValidationError

from linkdrop.cli import build_config, create_parser, generate_links, print_outcome
from linkdrop.config import ConfigurationError, LinkdropConfig, NetworkType, get_config
from linkdrop.core.allocator import FundingError
from linkdrop.core.batcher import LinkBatcher
from linkdrop.core.types import BatchResult, ClaimFailure, ClaimLink
from tests.conftest import OBJECT_TYPE, TEST_SECRET_KEY, MockChainClient


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Run without a .env file or inherited settings."""
    monkeypatch.chdir(tmp_path)
    for name in ("NETWORK", "RPC_URL", "SECRET_KEY", "OBJECT_TYPE", "LIMIT",
                 "GAS_BUDGET", "GAS_TIPS", "CONCURRENCY_LIMIT", "LOG_LEVEL", "LOG_JSON"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ============================================================================
# Test Settings
# ============================================================================

class TestLinkdropConfig:
    """Tests for settings loading and validation."""

    def test_defaults(self, clean_env):
        config = LinkdropConfig()

        assert config.network == NetworkType.MAINNET
        assert config.limit == 0
        assert config.gas_budget == 0
        assert config.gas_tips == 0
        assert config.concurrency_limit == 16
        assert config.link_host == "https://zksend.com"
        assert config.link_path == "/claim"

    def test_reads_environment(self, clean_env):
        clean_env.setenv("SECRET_KEY", "0x" + TEST_SECRET_KEY)
        clean_env.setenv("OBJECT_TYPE", OBJECT_TYPE)
        clean_env.setenv("LIMIT", "25")
        clean_env.setenv("GAS_BUDGET", "10000000")
        clean_env.setenv("GAS_TIPS", "500")
        clean_env.setenv("NETWORK", "testnet")

        config = LinkdropConfig()

        assert config.secret_key == TEST_SECRET_KEY
        assert config.object_type == OBJECT_TYPE
        assert config.limit == 25
        assert config.coin_value == 10_000_500
        assert config.network == NetworkType.TESTNET

    def test_reads_env_file(self, clean_env, tmp_path):
        (tmp_path / ".env").write_text(f"OBJECT_TYPE={OBJECT_TYPE}\nLIMIT=3\n")

        config = LinkdropConfig()

        assert config.object_type == OBJECT_TYPE
        assert config.limit == 3

    @pytest.mark.parametrize("network,url", [
        (NetworkType.MAINNET, "https://fullnode.mainnet.sui.io:443"),
        (NetworkType.TESTNET, "https://fullnode.testnet.sui.io:443"),
        (NetworkType.DEVNET, "https://fullnode.devnet.sui.io:443"),
        (NetworkType.LOCALNET, "http://127.0.0.1:9000"),
    ])
    def test_fullnode_url(self, clean_env, network, url):
        assert LinkdropConfig(network=network).fullnode_url == url

    def test_custom_rpc_url(self, clean_env):
        config = LinkdropConfig(rpc_url="http://node.internal:9000")

        assert config.fullnode_url == "http://node.internal:9000"

    @pytest.mark.parametrize("secret", ["zz" * 32, "11" * 31])
    def test_invalid_secret_key(self, clean_env, secret):
        with pytest.raises(ValidationError):
            LinkdropConfig(secret_key=secret)

    def test_negative_amounts_rejected(self, clean_env):
        with pytest.raises(ValidationError):
            LinkdropConfig(gas_tips=-1)
        with pytest.raises(ValidationError):
            LinkdropConfig(limit=-1)

    def test_validate_for_run(self, clean_env):
        with pytest.raises(ConfigurationError, match="SECRET_KEY"):
            LinkdropConfig(object_type=OBJECT_TYPE).validate_for_run()
        with pytest.raises(ConfigurationError, match="OBJECT_TYPE"):
            LinkdropConfig(secret_key=TEST_SECRET_KEY).validate_for_run()

        LinkdropConfig(secret_key=TEST_SECRET_KEY, object_type=OBJECT_TYPE).validate_for_run()


# ============================================================================
# Test Command Line
# ============================================================================

class TestCommandLine:
    """Tests for argument parsing and overrides."""

    def test_generate_overrides(self, clean_env):
        clean_env.setenv("LIMIT", "100")
        clean_env.setenv("GAS_TIPS", "7")
        args = create_parser().parse_args([
            "generate",
            "--object-type", OBJECT_TYPE,
            "--limit", "10",
            "--gas-budget", "2000000",
            "--concurrency", "0",
            "--network", "devnet",
        ])

        config = build_config(args)

        assert config.object_type == OBJECT_TYPE
        assert config.limit == 10
        assert config.gas_budget == 2_000_000
        assert config.gas_tips == 7
        assert config.concurrency_limit == 0
        assert config.network == NetworkType.DEVNET
        assert get_config() is config

    def test_address_command(self, clean_env):
        args = create_parser().parse_args(["address"])

        config = build_config(args)

        assert args.command == "address"
        assert config.log_level == "WARNING"

    def test_log_json_flag(self, clean_env):
        args = create_parser().parse_args(["discover", "--log-json"])

        assert build_config(args).log_json is True

    def test_discover_options_documented(self, capsys):
        with pytest.raises(SystemExit):
            create_parser().parse_args(["discover", "--help"])

        out, _ = capsys.readouterr()
        assert "Struct type of the objects to list" in out
        assert "Maximum number of objects to list" in out

    def test_discover_overrides(self, clean_env):
        clean_env.setenv("SECRET_KEY", TEST_SECRET_KEY)
        args = create_parser().parse_args([
            "discover", "--object-type", OBJECT_TYPE, "--limit", "3",
        ])

        config = build_config(args)

        assert config.object_type == OBJECT_TYPE
        assert config.limit == 3


# ============================================================================
# Test Generate Output
# ============================================================================

class StallingChainClient(MockChainClient):
    """Mock client whose claims after the first ``complete`` never return."""

    def __init__(self, complete: int):
        super().__init__()
        self.complete = complete
        self.claims_started = 0
        self.stalled = asyncio.Event()

    async def sign_and_execute(self, tx, signer, options=None):
        if {ref.object_id for ref in tx.gas_payment} & self.created_coin_ids:
            self.claims_started += 1
            if self.claims_started > self.complete:
                self.stalled.set()
                await asyncio.Event().wait()
        return await super().sign_and_execute(tx, signer, options)


class TestGenerateOutput:
    """Tests for what the generate command prints."""

    def _result(self):
        return BatchResult(
            signer_address="0x" + "ab" * 32,
            asset_count=2,
            coin_count=2,
            links=[ClaimLink(asset_id="0x1", tip_amount=5, url="https://zksend.com/claim#AAAA")],
            failures=[ClaimFailure(asset_id="0x2", reason="MoveAbort", coin_id="0xc2")],
        )

    def _patched_batcher(self, result):
        async def run(on_discovered=None, on_funded=None, on_outcome=None):
            on_discovered([object()] * result.asset_count)
            on_funded([object()] * result.coin_count)
            for outcome in result.links + result.failures:
                on_outcome(outcome)
            return result

        batcher = MagicMock()
        batcher.signer_address = result.signer_address
        batcher.initialize = AsyncMock()
        batcher.run = AsyncMock(side_effect=run)
        batcher.shutdown = AsyncMock()
        return batcher

    @pytest.mark.asyncio
    async def test_prints_counts_and_links(self, test_config, capsys):
        result = self._result()
        batcher = self._patched_batcher(result)

        with patch("linkdrop.cli.LinkBatcher", return_value=batcher):
            returned = await generate_links(test_config)

        out, err = capsys.readouterr()
        assert returned is result
        assert f"signer: {result.signer_address}" in out
        assert "object count: 2" in out
        assert "sui coin count: 2" in out
        assert "https://zksend.com/claim#AAAA" in out
        assert "FAILED 0x2: MoveAbort" in err
        batcher.shutdown.assert_awaited_once()

    @pytest.mark.asyncio
    async def test_writes_json_output(self, test_config, tmp_path):
        output = tmp_path / "links.json"
        batcher = self._patched_batcher(self._result())

        with patch("linkdrop.cli.LinkBatcher", return_value=batcher):
            await generate_links(test_config, str(output))

        data = json.loads(output.read_text())
        assert data["links"][0]["url"] == "https://zksend.com/claim#AAAA"
        assert data["failures"][0]["coin_id"] == "0xc2"

    @pytest.mark.asyncio
    async def test_shutdown_after_failed_run(self, test_config):
        batcher = self._patched_batcher(self._result())
        batcher.run = AsyncMock(side_effect=FundingError("funding transaction failed"))

        with patch("linkdrop.cli.LinkBatcher", return_value=batcher):
            with pytest.raises(FundingError):
                await generate_links(test_config)

        batcher.shutdown.assert_awaited_once()

    def test_failure_with_unknown_outcome_shows_link(self, capsys):
        print_outcome(ClaimFailure(
            asset_id="0x3",
            reason="connection reset",
            coin_id="0xc3",
            url="https://zksend.com/claim#BBBB",
        ))

        out, err = capsys.readouterr()
        assert out == ""
        assert "FAILED 0x3: connection reset" in err
        assert "https://zksend.com/claim#BBBB" in err

    @pytest.mark.asyncio
    async def test_links_printed_before_interruption(self, test_config, capsys):
        client = StallingChainClient(complete=2)
        client.add_owned_objects(3)
        client.add_coin(10_000_000_000)

        with patch("linkdrop.cli.LinkBatcher", lambda config: LinkBatcher(config, client=client)):
            task = asyncio.create_task(generate_links(test_config))
            await asyncio.wait_for(client.stalled.wait(), timeout=5)
            for _ in range(10):
                await asyncio.sleep(0)

            task.cancel()
            with pytest.raises(asyncio.CancelledError):
                await task

        out, _ = capsys.readouterr()
        links = [line for line in out.splitlines() if line.startswith("https://zksend.com/claim")]
        assert len(links) == 2
        assert "object count: 3" in out
        assert "sui coin count: 3" in out
        assert client._connected is False

    @pytest.mark.asyncio
    async def test_object_count_printed_when_funding_fails(self, test_config, capsys):
        client = MockChainClient()
        client.add_owned_objects(3)
        client.add_coin(10_000_000_000)
        client.fail_funding = True

        with patch("linkdrop.cli.LinkBatcher", lambda config: LinkBatcher(config, client=client)):
            with pytest.raises(FundingError):
                await generate_links(test_config)

        out, _ = capsys.readouterr()
        assert "object count: 3" in out
        assert "sui coin count" not in out
        assert not any(line.startswith("https://") for line in out.splitlines())
