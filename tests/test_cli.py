"""
Tests for the command-line interface.
"""

import json

import httpx
import pytest

from html_fixtures import FakePing0, build_error_page
from pong0 import __version__, cli
from pong0.models import ATTRIBUTION
from pong0.orchestrator import QueryOrchestrator


def use_fake_ping0(monkeypatch, server: FakePing0) -> None:
    def factory(config, logger=None):
        return QueryOrchestrator(config, logger=logger, transport=httpx.MockTransport(server))

    monkeypatch.setattr(cli, "QueryOrchestrator", factory)


class TestArgumentValidation:

    @pytest.mark.parametrize(
        "argv, message",
        [
            (["-c", "--all"], "-c and --all cannot be used together"),
            (["-p", "9000"], "-p and -k can only be used in server mode (-c)"),
            (["-k", "secret"], "-p and -k can only be used in server mode (-c)"),
            (["--diff", "3ef"], "--diff requires --x1"),
        ],
    )
    def test_invalid_combinations(self, argv: list[str], message: str, capsys) -> None:
        args = cli.create_parser().parse_args(argv)
        assert cli.validate_args(args) == message

        assert cli.main(argv) == 1
        assert message in capsys.readouterr().err

    @pytest.mark.parametrize(
        "argv",
        [
            [],
            ["--ip", "1.1.1.1"],
            ["--x1", "3ef12496741412ab807c60c346ded5e7", "--diff", "3ef", "--all"],
            ["-c", "-p", "9000", "-k", "secret"],
        ],
    )
    def test_valid_combinations(self, argv: list[str]) -> None:
        assert cli.validate_args(cli.create_parser().parse_args(argv)) is None

    def test_version(self, capsys) -> None:
        with pytest.raises(SystemExit) as exc_info:
            cli.main(["--version"])
        assert exc_info.value.code == 0
        assert __version__ in capsys.readouterr().out


class TestQueryMode:

    def test_prints_record(self, monkeypatch, capsys) -> None:
        use_fake_ping0(monkeypatch, FakePing0())

        assert cli.main(["--ip", "1.1.1.1"]) == 0

        body = json.loads(capsys.readouterr().out)
        assert body["ip"] == "1.1.1.1"
        assert body["ip_location"] == "美国 加利福尼亚州 洛杉矶"
        assert list(body)[-1] == "princess"

    def test_output_keeps_unicode(self, monkeypatch, capsys) -> None:
        use_fake_ping0(monkeypatch, FakePing0())
        cli.main(["--ip", "1.1.1.1"])
        assert "洛杉矶" in capsys.readouterr().out

    def test_manual_challenge(self, monkeypatch) -> None:
        server = FakePing0()
        use_fake_ping0(monkeypatch, server)

        assert cli.main(["--x1", "0123456789abcdef0123456789abcdef", "--diff", "0"]) == 0
        cookie = server.requests[-1].headers["cookie"]
        assert "js1key=16447216" in cookie
        assert "pow=0" in cookie

    def test_failure_prints_error_json(self, monkeypatch, capsys) -> None:
        use_fake_ping0(monkeypatch, FakePing0(final_page=build_error_page("请求过于频繁")))

        assert cli.main(["--ip", "1.1.1.1"]) == 1

        assert json.loads(capsys.readouterr().out) == {
            "error": "Step 3 failed: Site returned an error: 请求过于频繁",
            "princess": ATTRIBUTION,
        }

    def test_verbose_failure_goes_to_stderr(self, monkeypatch, capsys) -> None:
        use_fake_ping0(monkeypatch, FakePing0(final_page=build_error_page("请求过于频繁")))

        assert cli.main(["--ip", "1.1.1.1", "--all"]) == 1

        captured = capsys.readouterr()
        assert captured.out == ""
        assert "Failed to get IP information: Step 3 failed: Site returned an error" in captured.err

    def test_verbose_logs_to_stderr(self, monkeypatch, capsys) -> None:
        use_fake_ping0(monkeypatch, FakePing0())

        assert cli.main(["--ip", "1.1.1.1", "--all"]) == 0

        captured = capsys.readouterr()
        assert json.loads(captured.out)["ip"] == "1.1.1.1"
        assert "[QueryOrchestrator]" in captured.err


class TestServerMode:

    def test_starts_server_with_options(self, monkeypatch, capsys) -> None:
        import pong0.server

        started = {}
        monkeypatch.setattr(pong0.server, "is_port_available", lambda port, host: True)
        monkeypatch.setattr(
            pong0.server, "run_server",
            lambda config, logger=None: started.update(port=config.server.port,
                                                        api_key=config.server.api_key),
        )

        assert cli.main(["-c", "-p", "9000", "-k", "secret"]) == 0
        assert started == {"port": 9000, "api_key": "secret"}
        out = capsys.readouterr().out
        assert "listening on port 9000" in out
        assert "API key authentication enabled" in out

    def test_port_in_use(self, monkeypatch, capsys) -> None:
        import pong0.server

        monkeypatch.setattr(pong0.server, "is_port_available", lambda port, host: False)

        assert cli.main(["-c", "-p", "9000"]) == 1
        assert "already in use" in capsys.readouterr().err
