import io

import pytest

from tracking_layer.config import FilterConfig, load_params
from tracking_layer.errors import ConfigurationError
from tracking_layer.numeric import BOX_DIM
from tracking_layer.observations import format_observation
from tracking_layer.random_source import RandomSource
from tracking_layer.simulator import VehicleSimulator
from tracking_layer.simulator import main as simulator_main
from tracking_layer.tracker_node import TrackerNode, main

SCENARIO = "0 0.0 0.0 0.0 0.0 0.0 0.0\n10 0.05 0.0 0.05 0.0 5.0 0.0\n"


def simulated_file(seed=5, duration=0.1):
    sim = VehicleSimulator(dt=0.01, duration=duration, rng=RandomSource(seed))
    return "".join(format_observation(obs) + "\n" for obs in sim.run())


def test_node_writes_one_line_per_step():
    out = io.StringIO()
    node = TrackerNode({"report_every_ms": 0, "resampler": "logm", "sort": True}, output=out)
    steps = node.run(io.StringIO(simulated_file()))
    lines = out.getvalue().splitlines()
    assert steps == len(lines) > 0
    for line in lines:
        fields = [float(v) for v in line.split()]
        assert len(fields) == 6
        assert all(abs(v) <= BOX_DIM for v in fields)


def test_node_best_particle_only_output():
    out = io.StringIO()
    node = TrackerNode({"report_every_ms": 0, "best_particle_only": True}, output=out)
    node.run(io.StringIO(SCENARIO))
    (line,) = out.getvalue().splitlines()
    assert line.startswith("0.05 0.0  ")
    assert len(line.split()) == 4


def test_node_warns_about_unknown_parameters(caplog):
    TrackerNode({"report_every_ms": 0, "particles": 10}, output=io.StringIO())
    assert "particles" in caplog.text


def test_node_rejects_unknown_resampler():
    with pytest.raises(ConfigurationError):
        TrackerNode({"resampler": "stratified"}, output=io.StringIO())


def test_node_reports_particles(tmp_path):
    node = TrackerNode({"report_every_ms": 20, "report_dir": str(tmp_path)}, output=io.StringIO())
    node.run(io.StringIO(simulated_file(duration=0.05)))
    assert sorted(p.name for p in tmp_path.iterdir()) == ["particles-0.02.dat", "particles-0.04.dat"]


def test_load_params_accepts_node_section(tmp_path):
    path = tmp_path / "params.yaml"
    path.write_text("tracker_node:\n  num_particles: 10\n  resampler: regular\n")
    params = load_params(path)
    assert params == {"num_particles": 10, "resampler": "regular"}
    config = FilterConfig.from_mapping(params)
    assert config.num_particles == 10


def test_load_params_rejects_non_mapping(tmp_path):
    path = tmp_path / "params.yaml"
    path.write_text("- 1\n- 2\n")
    with pytest.raises(ConfigurationError):
        load_params(path)


def test_config_validation():
    with pytest.raises(ConfigurationError):
        FilterConfig(resample_interval=0)
    with pytest.raises(ConfigurationError):
        FilterConfig(gps_var=0.0)
    with pytest.raises(ConfigurationError):
        FilterConfig.from_mapping({"nparticles": 3})


def test_main_runs_file(tmp_path, capsys):
    data = tmp_path / "obs.dat"
    data.write_text(SCENARIO)
    code = main(["--file", str(data), "--nparticles", "100", "--sampler", "regular", "--report-particles", "0"])
    assert code == 0
    (line,) = capsys.readouterr().out.splitlines()
    assert len(line.split()) == 6


def test_main_params_file_error_exits_nonzero(tmp_path):
    data = tmp_path / "obs.dat"
    data.write_text(SCENARIO)
    params = tmp_path / "params.yaml"
    params.write_text("tracker_node:\n  resampler: bogus\n")
    assert main(["--file", str(data), "--params-file", str(params)]) == 1


def test_main_missing_file_exits_nonzero(tmp_path):
    assert main(["--file", str(tmp_path / "missing.dat"), "--report-particles", "0"]) == 1


def test_simulator_main_writes_file(tmp_path):
    out = tmp_path / "sim.dat"
    assert simulator_main(["--duration", "0.05", "--seed", "3", "-o", str(out)]) == 0
    lines = out.read_text().splitlines()
    stamps = [int(line.split()[0]) for line in lines]
    assert stamps == sorted(stamps) and len(set(stamps)) == len(stamps)
    assert len(lines) >= 5


def test_config_converts_values_to_field_types():
    config = FilterConfig.from_mapping({"num_particles": "25", "gps_var": 2, "report_dir": "out"})
    assert config.num_particles == 25
    assert isinstance(config.gps_var, float)
    with pytest.raises(ConfigurationError):
        FilterConfig.from_mapping({"num_particles": "many"})
    with pytest.raises(ConfigurationError):
        FilterConfig.from_mapping({"sort": "yes"})


def test_node_builds_config_from_params():
    node = TrackerNode({"num_particles": 12, "resampler": "optimal", "report_every_ms": 0}, output=io.StringIO())
    assert node.config == FilterConfig(num_particles=12, resampler="optimal", report_every_ms=0)
    assert len(node.bpf.current) == 12


def test_load_params_rejects_malformed_yaml(tmp_path):
    path = tmp_path / "params.yaml"
    path.write_text("tracker_node: [unclosed\n")
    with pytest.raises(ConfigurationError):
        load_params(path)


@pytest.mark.parametrize(
    "content",
    ["tracker_node: [unclosed\n", "tracker_node:\n  num_particles: lots\n"],
)
def test_main_bad_params_exit_nonzero(tmp_path, content):
    data = tmp_path / "obs.dat"
    data.write_text(SCENARIO)
    params = tmp_path / "params.yaml"
    params.write_text(content)
    assert main(["--file", str(data), "--params-file", str(params)]) == 1
