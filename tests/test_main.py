import json
import xml.etree.ElementTree as ET

import pytest

from cartoniq.main import main


def test_generate_writes_svg(tmp_path, capsys):
    out = tmp_path / "gift.svg"
    assert main(["generate", "gift", "120", "120", "40", "-o", str(out)]) == 0
    ET.parse(str(out))
    assert "356" in capsys.readouterr().out


def test_generate_die_only_json(tmp_path, capsys):
    out = tmp_path / "tray.svg"
    code = main(["generate", "tray-base", "80", "80", "35", "--die-only", "--json", "-o", str(out)])
    assert code == 0
    data = json.loads(capsys.readouterr().out)
    assert data["archetype"] == "tray-base"
    assert len(data["fold_lines"]) == 4
    assert "cmyk" not in out.read_text(encoding="utf-8").lower()


def test_two_piece(tmp_path):
    prefix = tmp_path / "set"
    assert main(["two-piece", "200", "160", "50", "-o", str(prefix)]) == 0
    ET.parse(str(tmp_path / "set_base.svg"))
    ET.parse(str(tmp_path / "set_lid.svg"))


def test_cost_json(capsys):
    assert main(["cost", "100", "100", "100", "--quantity", "1500", "--json"]) == 0
    data = json.loads(capsys.readouterr().out)
    assert data["discount"] == 0.1
    assert data["total_cost"] == pytest.approx(48.6)


def test_cost_scenarios(capsys):
    assert main(["cost", "100", "100", "100", "--scenarios"]) == 0
    assert len(capsys.readouterr().out.strip().splitlines()) == 3


def test_color(capsys):
    assert main(["color", "#8B7355"]) == 0
    assert "cmyk(0%, 17.3%, 38.8%, 45.5%)" in capsys.readouterr().out


def test_template(tmp_path, capsys):
    out = tmp_path / "truffle.svg"
    assert main(["template", "truffle-12", "-o", str(out)]) == 0
    ET.parse(str(out))
    assert main(["template", "--list"]) == 0
    assert "seasonal-valentines" in capsys.readouterr().out


def test_preview(tmp_path):
    out = tmp_path / "preview.png"
    assert main(["preview", "gift", "120", "120", "40", "-o", str(out)]) == 0
    assert out.exists()
    folded = tmp_path / "folded.png"
    assert main(["preview", "truffle", "80", "60", "20", "-o", str(folded), "--fold", "0.5"]) == 0
    assert folded.exists()


@pytest.mark.parametrize("argv", [
    ["generate", "hexagon", "10", "10", "10"],
    ["generate", "gift", "0", "10", "10"],
    ["generate", "tray-base", "50", "50", "40"],
    ["cost", "100", "100", "100", "--quantity", "0"],
    ["color", "#12345"],
    ["template", "gift-100"],
])
def test_errors_exit_with_status_2(argv, tmp_path, capsys):
    if argv[0] == "generate":
        argv = argv + ["-o", str(tmp_path / "out.svg")]
    assert main(argv) == 2
    assert capsys.readouterr().err.startswith("Error:")


def test_config_option(tmp_path, capsys):
    config = tmp_path / "settings.json"
    config.write_text(json.dumps({"geometry": {"glue_tab_width": 12.0}}), encoding="utf-8")
    out = tmp_path / "gift.svg"
    assert main(["--config", str(config), "generate", "gift", "120", "120", "40",
                 "--json", "-o", str(out)]) == 0
    assert json.loads(capsys.readouterr().out)["flat_dimensions"]["width"] == 350.0


def test_cost_scenarios_use_configured_waste_factor(tmp_path, capsys):
    config = tmp_path / "settings.json"
    config.write_text(json.dumps({"geometry": {"waste_factor": 2.0}}), encoding="utf-8")
    assert main(["--config", str(config), "cost", "100", "100", "100",
                 "--quantity", "500", "--json"]) == 0
    assert json.loads(capsys.readouterr().out)["unit_cost"] == pytest.approx(0.06)

    assert main(["--config", str(config), "cost", "100", "100", "100", "--scenarios"]) == 0
    first = capsys.readouterr().out.splitlines()[0]
    assert "500 pcs  unit 0.06 USD" in first
