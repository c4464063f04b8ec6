"""
Tests for the command-line front end.
"""

import json

import numpy as np
import pytest

import main as cli


MODEL = {
    "nodes": [
        {"id": "A", "potentials": [0.6, 0.4]},
        {"id": "B", "potentials": [0.5, 0.5], "fixed": 1},
        {"id": "C", "potentials": [0.7, 0.3]},
    ],
    "edges": [
        {"id": "AB", "nodes": ["A", "B"], "potentials": [[0.9, 0.1], [0.2, 0.8]]},
        {"nodes": ["B", "C"], "potentials": [[0.3, 0.7], [0.5, 0.5]]},
    ],
}


@pytest.fixture
def model_file(tmp_path):
    path = tmp_path / "model.json"
    path.write_text(json.dumps(MODEL))
    return path


def run(monkeypatch, *argv):
    monkeypatch.setattr("sys.argv", ["pairbp", *argv])
    return cli.main()


class TestModelIO:
    def test_graph_from_dict(self):
        graph = cli.graph_from_dict(MODEL)
        assert [n.id for n in graph.nodes()] == ["A", "B", "C"]
        assert [e.id for e in graph.edges()] == ["AB", 1]
        assert graph.node("B").fixed_value == 1

    def test_load_model(self, model_file):
        graph = cli.load_model_from_json(str(model_file))
        assert len(graph) == 3

    def test_missing_key(self):
        with pytest.raises(KeyError):
            cli.graph_from_dict({"nodes": []})


class TestCommands:
    def test_infer_writes_output(self, monkeypatch, model_file, tmp_path):
        out = tmp_path / "result.json"
        assert run(monkeypatch, "infer", "-i", str(model_file), "-o", str(out)) == 0

        data = json.loads(out.read_text())
        assert data["method"] == "lbp"
        assert data["converged"] is True
        assert np.allclose(data["node_beliefs"]["B"], [0.0, 1.0])
        assert set(data["edge_beliefs"]) == {"AB", "1"}

    def test_infer_ignore_fixed(self, monkeypatch, model_file, tmp_path):
        out = tmp_path / "result.json"
        argv = ["infer", "-i", str(model_file), "-o", str(out), "-m", "trw", "--seed", "0", "--ignore-fixed"]
        assert run(monkeypatch, *argv) == 0
        data = json.loads(out.read_text())
        assert data["node_beliefs"]["B"][0] > 0.0

    def test_infer_options_file(self, monkeypatch, model_file, tmp_path):
        opts_path = tmp_path / "options.json"
        opts_path.write_text(json.dumps({
            "max_iterations": 7,
            "processing_order": "residual",
            "score_combination": "max",
            "seed": 4,
        }))
        out = tmp_path / "result.json"
        argv = ["infer", "-i", str(model_file), "-o", str(out), "--options", str(opts_path),
                "--max-iterations", "9"]
        assert run(monkeypatch, *argv) == 0

        saved = json.loads(out.read_text())["options"]
        # flags win over the file
        assert saved["max_iterations"] == 9
        assert saved["processing_order"] == "residual"
        assert saved["score_combination"] == "max"
        assert saved["seed"] == 4
        assert saved["convergence_threshold"] == pytest.approx(1e-4)

    def test_infer_bad_options_file(self, monkeypatch, model_file, tmp_path):
        opts_path = tmp_path / "options.json"
        opts_path.write_text(json.dumps({"max_iter": 7}))
        argv = ["infer", "-i", str(model_file), "--options", str(opts_path)]
        assert run(monkeypatch, *argv) == 1

    def test_infer_null_option_is_reported(self, monkeypatch, model_file, tmp_path):
        opts_path = tmp_path / "options.json"
        opts_path.write_text(json.dumps({"max_iterations": None}))
        argv = ["infer", "-i", str(model_file), "--options", str(opts_path)]
        assert run(monkeypatch, *argv) == 1

    def test_infer_missing_file(self, monkeypatch, tmp_path):
        assert run(monkeypatch, "infer", "-i", str(tmp_path / "nope.json")) == 1

    def test_maxflow(self, monkeypatch, capsys):
        caps = "[[0, 3, 2], [0, 0, 2], [0, 0, 0]]"
        assert run(monkeypatch, "maxflow", "--capacities", caps, "-s", "0", "-t", "2") == 0
        assert "Max flow: 4" in capsys.readouterr().out

    def test_maxflow_bad_terminal(self, monkeypatch):
        caps = "[[0, 1], [0, 0]]"
        assert run(monkeypatch, "maxflow", "--capacities", caps, "-s", "0", "-t", "0") == 1

    @pytest.mark.parametrize("example", ["chain", "grid", "maxflow"])
    def test_demos(self, monkeypatch, example):
        assert run(monkeypatch, "demo", "--example", example) == 0

    def test_options_from_args(self, monkeypatch):
        captured = {}

        def fake_infer(graph, method, options):
            captured["options"] = options
            raise ValueError("stop")

        monkeypatch.setattr(cli, "infer_marginals", fake_infer)
        monkeypatch.setattr(cli, "load_model_from_json", lambda path: cli.graph_from_dict(MODEL))
        argv = ["infer", "-i", "x.json", "--order", "residual", "--max-product", "--max-iterations", "7"]
        assert run(monkeypatch, *argv) == 1

        options = captured["options"]
        assert options.max_iterations == 7
        assert options.maximize
        assert options.processing_order.value == "residual"
