"""Tests for CLI argument parsing and commands."""

from unittest.mock import patch

from alert_dashboard.core.config import NO_DATA_TEXT


def test_no_subcommand_launches_gui():
    """Test that running without arguments launches the GUI."""
    with patch("sys.argv", ["alert-dashboard"]), patch("alert_dashboard.main.launch_gui") as mock_launch_gui:
        from alert_dashboard.main import main

        main()

        assert mock_launch_gui.called


def test_open_subcommand():
    """Test that 'open' subcommand launches GUI with config file."""
    test_args = ["alert-dashboard", "open", "test_config.yaml"]

    with patch("sys.argv", test_args), patch("alert_dashboard.main.launch_gui") as mock_launch_gui:
        from alert_dashboard.main import main

        main()

        assert mock_launch_gui.called
        assert mock_launch_gui.call_args[1]["config_file"] == "test_config.yaml"


def test_query_subcommand_arguments():
    """Test that query arguments are parsed."""
    test_args = ["alert-dashboard", "query", "10.5", "-2.25", "--backend-url", "http://localhost:9000"]

    with patch("sys.argv", test_args), patch("alert_dashboard.main.cmd_query") as mock_query:
        from alert_dashboard.main import main

        mock_query.return_value = 0
        result = main()

        assert result == 0
        args = mock_query.call_args[0][0]
        assert (args.lon, args.lat) == (10.5, -2.25)
        assert args.backend_url == "http://localhost:9000"
        assert args.config is None


def test_query_against_service(sample_server, capsys):
    """Test a one-shot query through the HTTP backend."""
    sample_server.responses.append((200, {"value": 24366}))
    test_args = ["alert-dashboard", "query", "10.0", "-2.0", "--backend-url", sample_server.url]

    with patch("sys.argv", test_args):
        from alert_dashboard.main import main

        result = main()

    assert result == 0
    assert "Clicked point date: 2024-12-31" in capsys.readouterr().out
    assert sample_server.requests[0]["band"] == "Date"


def test_query_no_data_exit_code(sample_server, capsys):
    """Test that a point without data exits with 1."""
    sample_server.responses.append((200, {"value": None}))
    test_args = ["alert-dashboard", "query", "10.0", "-2.0", "--backend-url", sample_server.url]

    with patch("sys.argv", test_args):
        from alert_dashboard.main import main

        result = main()

    assert result == 1
    assert NO_DATA_TEXT in capsys.readouterr().out


def test_query_invalid_coordinate(capsys):
    """Test that out-of-range coordinates are rejected."""
    with patch("sys.argv", ["alert-dashboard", "query", "200", "0"]):
        from alert_dashboard.main import main

        result = main()

    assert result == 1
    assert "Longitude" in capsys.readouterr().err


def test_list_layers(capsys):
    """Test that list-layers prints the default layers."""
    with patch("sys.argv", ["alert-dashboard", "list-layers"]):
        from alert_dashboard.main import main

        result = main()

    output = capsys.readouterr().out
    assert result == 0
    assert "Alert Date (queried)" in output
    assert "Legend: discrete, 2 colors" in output


def test_demo_final_label_is_last_click(capsys):
    """Test that the demo ends showing the result of the last click."""
    test_args = ["alert-dashboard", "demo", "--clicks", "4", "--interval", "0", "--max-delay", "0.05"]

    with patch("sys.argv", test_args):
        from alert_dashboard.main import main

        result = main()

    output = capsys.readouterr().out
    assert result == 0
    assert "Final label:" in output
    assert "Querying" not in output.split("Final label:")[1]
