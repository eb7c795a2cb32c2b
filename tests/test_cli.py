"""
End-to-end tests for the framework entry point and the composed CLI.
"""

import io
import json

import pytest

from conftest import HARDHAT_ADDRESS, HARDHAT_MNEMONIC, FakeModule, Recorder, ethereum_entry, write_chains
from ibcrelayer.cli.app import execute
from ibcrelayer.cli.main import main
from ibcrelayer.core.commands import CommandFragment
from ibcrelayer.core.errors import CollisionError, NotFoundError, UsageError
from ibcrelayer.core.module import Capability, Module, Role
from ibcrelayer.core.schema import ConfigField, ConfigSchema
from ibcrelayer.modules import EthereumModule, HDModule, MockProverModule


def test_execute_runs_exactly_one_handler(relayer_home):
    handler = Recorder()
    other = Recorder()
    module = FakeModule(
        "fake",
        commands=[CommandFragment(("fake", "run"), handler), CommandFragment(("fake", "other"), other)],
    )

    assert execute(module, argv=["fake", "run"]) == 0
    assert len(handler.calls) == 1
    assert other.calls == []


def test_execute_returns_handler_status(relayer_home):
    module = FakeModule("fake", commands=[CommandFragment(("fake", "fail"), Recorder(result=4))])
    assert execute(module, argv=["fake", "fail"]) == 4


def test_execute_surfaces_registration_collision_before_dispatch(relayer_home):
    handler = Recorder()
    a = FakeModule("ethereum", commands=[CommandFragment(("a", "run"), handler)])
    b = FakeModule("ethereum")

    with pytest.raises(CollisionError):
        execute(a, b, argv=["a", "run"])
    assert handler.calls == []


def test_execute_surfaces_command_collision_before_dispatch(relayer_home):
    handler = Recorder()
    a = FakeModule("a", commands=[CommandFragment(("config", "show"), handler)])

    with pytest.raises(CollisionError, match="config show"):
        execute(a, argv=["chains", "list"])
    assert handler.calls == []


def test_unknown_command_never_invokes_a_factory(relayer_home):
    module = FakeModule("fake", roles=[Role.CHAIN, Role.SIGNER, Role.PROVER])

    with pytest.raises(UsageError):
        execute(module, argv=["relay", "everything"])
    assert module.built == []


def test_handler_error_keeps_identity(relayer_home):
    error = ConnectionError("rpc down")
    module = FakeModule("fake", commands=[CommandFragment(("fake", "run"), Recorder(result=error))])

    with pytest.raises(ConnectionError) as excinfo:
        execute(module, argv=["fake", "run"])
    assert excinfo.value is error


def test_global_home_flag_is_passed_to_handlers(tmp_path, relayer_home):
    seen = []
    module = FakeModule("fake", commands=[CommandFragment(("where",), lambda args, ctx: seen.append(ctx.home))])

    execute(module, argv=["--home", str(tmp_path / "elsewhere"), "where"])

    assert seen == [tmp_path / "elsewhere"]


def test_query_height_resolves_chain_backend(relayer_home, capsys):
    module = FakeModule("fake")
    write_chains(relayer_home, [{"chain": {"type": "fake", "chain_id": "ibc0", "height": 77}}])

    execute(module, argv=["query", "height", "ibc0"])

    assert capsys.readouterr().out.strip() == "77"
    assert len(module.built) == 1
    assert module.built[0].closed


def test_query_height_unknown_backend_type(relayer_home):
    write_chains(relayer_home, [{"chain": {"type": "cosmos", "chain_id": "ibc0"}}])
    with pytest.raises(NotFoundError, match="valid: fake"):
        execute(FakeModule("fake"), argv=["query", "height", "ibc0"])


def test_main_lists_bundled_modules(relayer_home, capsys):
    assert main(["modules", "list"]) == 0

    out = capsys.readouterr().out
    assert "chain:\n  ethereum" in out
    assert "signer:\n  hd" in out
    assert "prover:\n  mock" in out


def test_main_modules_show_prints_schema(relayer_home, capsys):
    assert main(["modules", "show", "chain", "ethereum"]) == 0
    assert "rpc_addr (str, required)" in capsys.readouterr().out


def test_main_unknown_command_exit_code(relayer_home, capsys):
    assert main(["teleport"]) == 2
    err = capsys.readouterr().err
    assert "unknown command 'teleport'" in err
    assert "query height" in err


def test_main_no_command_exit_code(relayer_home):
    assert main([]) == 2


def test_main_error_exit_code(relayer_home, capsys):
    assert main(["chains", "show", "missing"]) == 1
    assert "Chain 'missing' not found" in capsys.readouterr().err


def test_main_help_and_version(relayer_home, capsys):
    assert main(["--help"]) == 0
    assert "ethereum balance" in capsys.readouterr().out
    assert main(["--version"]) == 0


def test_main_config_init_refuses_overwrite(tmp_path, capsys, monkeypatch):
    monkeypatch.chdir(tmp_path)
    home = tmp_path / "fresh"

    assert main(["--home", str(home), "config", "init"]) == 0
    assert json.loads((home / "config" / "config.json").read_text())["chains"] == []
    assert main(["--home", str(home), "config", "init"]) == 1
    assert "already exists" in capsys.readouterr().err


def test_main_chains_add_and_list(relayer_home, tmp_path, capsys):
    chain_file = tmp_path / "ibc0.json"
    chain_file.write_text(json.dumps(ethereum_entry("ibc0")))

    assert main(["chains", "add", str(chain_file)]) == 0
    assert main(["chains", "list"]) == 0
    assert "ibc0  chain=ethereum signer=hd prover=mock" in capsys.readouterr().out

    assert main(["chains", "add", str(chain_file)]) == 1
    assert "already configured" in capsys.readouterr().err


def test_main_chains_add_validates_against_module_schema(relayer_home, tmp_path, capsys):
    entry = ethereum_entry("ibc0")
    del entry["chain"]["rpc_addr"]
    chain_file = tmp_path / "bad.json"
    chain_file.write_text(json.dumps(entry))

    assert main(["chains", "add", str(chain_file)]) == 1
    assert "missing required keys: rpc_addr" in capsys.readouterr().err


def test_main_keys_show(relayer_home, capsys):
    write_chains(relayer_home, [ethereum_entry("ibc0")])
    assert main(["keys", "show", "ibc0"]) == 0
    assert capsys.readouterr().out.strip() == HARDHAT_ADDRESS


def test_ethereum_balance_command(relayer_home, fake_web3, capsys):
    write_chains(relayer_home, [ethereum_entry("ibc0")])

    status = execute(
        EthereumModule(web3_factory=lambda url: fake_web3),
        HDModule(),
        MockProverModule(),
        argv=["ethereum", "balance", "ibc0", HARDHAT_ADDRESS],
    )

    assert status == 0
    assert "3.000000 ETH" in capsys.readouterr().out


def test_ethereum_client_state_not_found(relayer_home, fake_web3, capsys):
    write_chains(relayer_home, [ethereum_entry("ibc0")])
    contract = fake_web3.eth.contract.return_value
    contract.functions.getClientState.return_value.call.return_value = (b"", False)

    status = execute(
        EthereumModule(web3_factory=lambda url: fake_web3),
        argv=["ethereum", "client-state", "ibc0", "mock-client-0"],
    )

    assert status == 1
    assert "not found" in capsys.readouterr().out


def test_hd_address_command(relayer_home, capsys):
    assert main(["hd", "address", "--mnemonic", HARDHAT_MNEMONIC]) == 0
    assert capsys.readouterr().out.strip() == HARDHAT_ADDRESS


def test_hd_address_reads_environment(relayer_home, monkeypatch, capsys):
    monkeypatch.setenv("RELAYER_MNEMONIC", HARDHAT_MNEMONIC)
    assert main(["hd", "address"]) == 0
    assert capsys.readouterr().out.strip() == HARDHAT_ADDRESS


class _Terminal(io.StringIO):
    def isatty(self):
        return True


def test_hd_address_prompts_on_terminal(relayer_home, monkeypatch, capsys):
    prompts = []
    monkeypatch.delenv("RELAYER_MNEMONIC", raising=False)
    monkeypatch.setattr("sys.stdin", _Terminal())
    monkeypatch.setattr("getpass.getpass", lambda prompt: prompts.append(prompt) or HARDHAT_MNEMONIC)

    assert main(["hd", "address"]) == 0
    assert capsys.readouterr().out.strip() == HARDHAT_ADDRESS
    assert prompts == ["Mnemonic: "]


def test_hd_address_without_mnemonic_fails_off_terminal(relayer_home, monkeypatch, capsys):
    monkeypatch.delenv("RELAYER_MNEMONIC", raising=False)
    monkeypatch.setattr("sys.stdin", io.StringIO())

    assert main(["hd", "address"]) == 1
    assert "RELAYER_MNEMONIC" in capsys.readouterr().err


class _PlainChain(Module):
    """Chain module whose schema knows nothing about framework keys."""

    name = "plain"

    def capabilities(self):
        return {Role.CHAIN: Capability(schema=ConfigSchema([ConfigField("url")]), build=dict)}


def test_chains_add_accepts_module_without_chain_id_field(relayer_home, tmp_path, capsys):
    chain_file = tmp_path / "c0.json"
    chain_file.write_text(json.dumps({"chain": {"type": "plain", "chain_id": "c0", "url": "http://node"}}))

    assert execute(_PlainChain(), argv=["chains", "add", str(chain_file)]) == 0
    assert execute(_PlainChain(), argv=["chains", "list"]) == 0
    assert "c0  chain=plain" in capsys.readouterr().out


def test_global_timeout_reaches_chain_backend(relayer_home, fake_web3):
    config_file = relayer_home / "config" / "config.json"
    config_file.write_text(
        json.dumps({"global": {"timeout": "2s", "log_level": "info"}, "chains": [ethereum_entry("ibc0")]})
    )
    seen = []

    def handler(args, ctx):
        seen.append(ctx.build("ibc0", Role.CHAIN))

    module = FakeModule("tools", roles=(), commands=[CommandFragment(("build",), handler)])
    execute(EthereumModule(web3_factory=lambda url: fake_web3), module, argv=["build"])

    assert seen[0].config.timeout == 2.0
