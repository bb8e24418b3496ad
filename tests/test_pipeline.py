import csv
import json
import tempfile
import unittest
from pathlib import Path

from typer.testing import CliRunner

from cramerv import bench as bench_module
from cramerv import report as report_module
from cramerv.cli import app
from cramerv.config import BenchConfig, load_bench_config
from cramerv.io import LoadConfig, load_columns, load_records
from cramerv.registry import ImplementationRegistry, default_registry, registry as shared_registry


SAMPLE_RECORDS = [
    {"x": "A", "y": "X", "n": 1},
    {"x": "A", "y": "Y", "n": 2},
    {"x": "B", "y": "X", "n": 3},
    {"x": "B", "y": "Y", "n": 4},
    {"x": "A", "y": "X", "n": 5},
    {"x": "B", "y": "Y", "n": 6},
]


class LoaderTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tempdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tempdir.cleanup)
        self.root = Path(self.tempdir.name)

    def _write_csv(self) -> Path:
        path = self.root / "sample.csv"
        with path.open("w", newline="", encoding="utf-8") as handle:
            writer = csv.DictWriter(handle, fieldnames=["x", "y", "n"])
            writer.writeheader()
            writer.writerows(SAMPLE_RECORDS)
        return path

    def test_load_csv(self) -> None:
        records = load_records(self._write_csv())
        self.assertEqual(len(records), 6)
        self.assertEqual(records[0]["x"], "A")

    def test_load_json_array_and_jsonl(self) -> None:
        array_path = self.root / "sample.json"
        array_path.write_text(json.dumps(SAMPLE_RECORDS))
        jsonl_path = self.root / "sample.jsonl"
        jsonl_path.write_text("\n".join(json.dumps(r) for r in SAMPLE_RECORDS) + "\n\n")
        self.assertEqual(load_records(array_path), SAMPLE_RECORDS)
        self.assertEqual(load_records(jsonl_path), SAMPLE_RECORDS)

    def test_load_json_object(self) -> None:
        path = self.root / "single.json"
        path.write_text(json.dumps({"x": "A", "y": "X"}))
        self.assertEqual(load_records(path), [{"x": "A", "y": "X"}])

    def test_max_records(self) -> None:
        path = self.root / "sample.json"
        path.write_text(json.dumps(SAMPLE_RECORDS))
        self.assertEqual(len(load_records(path, LoadConfig(max_records=2))), 2)

    def test_load_columns(self) -> None:
        x, y = load_columns(self._write_csv(), "x", "y")
        self.assertEqual(x, ["A", "A", "B", "B", "A", "B"])
        self.assertEqual(y, ["X", "Y", "X", "Y", "X", "Y"])

    def test_load_columns_unknown_column(self) -> None:
        with self.assertRaises(KeyError):
            load_columns(self._write_csv(), "x", "missing")

    def test_invalid_format_rejected(self) -> None:
        with self.assertRaises(ValueError):
            LoadConfig(format="xml")

    def test_missing_file(self) -> None:
        with self.assertRaises(FileNotFoundError):
            load_records(self.root / "nope.json")


class ConfigTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tempdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tempdir.cleanup)
        self.root = Path(self.tempdir.name)

    def test_defaults(self) -> None:
        config = BenchConfig()
        self.assertEqual(config.sizes, [100, 1000, 10000])
        self.assertEqual(config.implementations, ["optimized", "crosstab", "scipy"])
        self.assertEqual(config.reference, "scipy")

    def test_load_yaml_with_overrides(self) -> None:
        path = self.root / "bench.yaml"
        path.write_text("sizes: [10, 20]\nrepeats: 3\nrow_levels: 5\n")
        config = load_bench_config(path, repeats=7, seed=None)
        self.assertEqual(config.sizes, [10, 20])
        self.assertEqual(config.repeats, 7)
        self.assertEqual(config.row_levels, 5)
        self.assertEqual(config.seed, 0)

    def test_unknown_key_rejected(self) -> None:
        path = self.root / "bench.yaml"
        path.write_text("sizes: [10]\nwarmup: 2\n")
        with self.assertRaises(ValueError):
            load_bench_config(path)

    def test_invalid_values_rejected(self) -> None:
        with self.assertRaises(ValueError):
            BenchConfig(repeats=0)
        with self.assertRaises(ValueError):
            BenchConfig(sizes=[])
        with self.assertRaises(ValueError):
            BenchConfig(row_levels=1)

    def test_wrong_types_rejected_as_value_error(self) -> None:
        for overrides in (
            {"row_levels": "3"},
            {"repeats": 2.5},
            {"sizes": ["10"]},
            {"sizes": [True]},
            {"seed": "zero"},
            {"tolerance": "tight"},
            {"implementations": "optimized"},
        ):
            with self.subTest(**{key: repr(value) for key, value in overrides.items()}):
                with self.assertRaises(ValueError):
                    BenchConfig(**overrides)

    def test_yaml_string_level_rejected(self) -> None:
        path = self.root / "bench.yaml"
        path.write_text("sizes: [10]\nrow_levels: \"3\"\n")
        with self.assertRaises(ValueError):
            load_bench_config(path)


class BenchmarkTests(unittest.TestCase):
    def test_run_benchmark_times_each_pair(self) -> None:
        config = BenchConfig(sizes=[50, 200], repeats=2, seed=1)
        progress: list[int] = []
        results = bench_module.run_benchmark(config, progress_callback=progress.append)

        self.assertEqual(len(results), 6)
        self.assertEqual(progress[-1], 6)
        for size in (50, 200):
            relatives = [r.relative for r in results if r.size == size]
            self.assertEqual(min(relatives), 1.0)
        for result in results:
            self.assertEqual(len(result.timings), 2)
            self.assertLessEqual(result.best, result.mean)

        summary = bench_module.summarise(results)
        self.assertEqual([row["size"] for row in summary], [50, 50, 50, 200, 200, 200])
        self.assertEqual(summary[0]["relative"], 1.0)

    def test_disagreeing_implementation_raises(self) -> None:
        registry = default_registry()
        registry.register("broken", lambda x, y: 2.0)
        config = BenchConfig(sizes=[30], repeats=1, implementations=["optimized", "broken"])
        with self.assertRaises(bench_module.BenchmarkError) as ctx:
            bench_module.run_benchmark(config, registry=registry)
        self.assertEqual(ctx.exception.implementation, "broken")

    def test_unknown_implementation(self) -> None:
        config = BenchConfig(sizes=[30], repeats=1, implementations=["nope"])
        with self.assertRaises(KeyError):
            bench_module.run_benchmark(config, registry=ImplementationRegistry())

    def test_report_renders_results(self) -> None:
        config = BenchConfig(sizes=[40], repeats=1)
        summary = bench_module.summarise(bench_module.run_benchmark(config))
        html = report_module.render_report({"config": config.to_dict(), "results": summary})
        self.assertIn("n = 40", html)
        for name in ("optimized", "crosstab", "scipy"):
            self.assertIn(name, html)

    def test_report_rejects_malformed_documents(self) -> None:
        with self.assertRaises(ValueError):
            report_module.render_report([1, 2, 3])
        with self.assertRaises(ValueError):
            report_module.render_report({"results": "fast"})
        with self.assertRaises(KeyError):
            report_module.render_report({"results": [{"implementation": "optimized", "size": 10}]})


class CliTests(unittest.TestCase):
    def setUp(self) -> None:
        self.runner = CliRunner()
        self.tempdir = tempfile.TemporaryDirectory()
        self.addCleanup(self.tempdir.cleanup)
        self.root = Path(self.tempdir.name)
        self.source = self.root / "sample.json"
        self.source.write_text(json.dumps(SAMPLE_RECORDS))

    def test_compute(self) -> None:
        result = self.runner.invoke(
            app, ["compute", str(self.source), "--x", "x", "--y", "y", "--show-table"]
        )
        self.assertEqual(result.exit_code, 0, msg=result.output)
        self.assertIn("0.333333", result.output)

    def test_compute_unknown_column(self) -> None:
        result = self.runner.invoke(app, ["compute", str(self.source), "--x", "x", "--y", "z"])
        self.assertNotEqual(result.exit_code, 0)

    def test_matrix_to_file(self) -> None:
        output = self.root / "matrix.json"
        result = self.runner.invoke(app, ["matrix", str(self.source), "-o", str(output)])
        self.assertEqual(result.exit_code, 0, msg=result.output)
        matrix = json.loads(output.read_text())
        self.assertAlmostEqual(matrix["x"]["y"], 0.3333, places=4)

    def test_bench_then_report(self) -> None:
        results_path = self.root / "results.json"
        html_path = self.root / "report.html"
        result = self.runner.invoke(
            app, ["bench", "--size", "30", "--repeats", "1", "-o", str(results_path)]
        )
        self.assertEqual(result.exit_code, 0, msg=result.output)
        document = json.loads(results_path.read_text())
        self.assertEqual(document["config"]["sizes"], [30])
        self.assertEqual(len(document["results"]), 3)

        result = self.runner.invoke(app, ["report", str(results_path), "-o", str(html_path)])
        self.assertEqual(result.exit_code, 0, msg=result.output)
        self.assertIn("optimized", html_path.read_text())

    def test_bench_plugin_does_not_outlive_invocation(self) -> None:
        before = shared_registry.names()
        result = self.runner.invoke(
            app,
            [
                "bench",
                "--size", "30",
                "--repeats", "1",
                "--plugin", "extra=cramerv.reference.cramer_v_crosstab",
                "--impl", "extra",
            ],
        )
        self.assertEqual(result.exit_code, 0, msg=result.output)
        self.assertEqual(shared_registry.names(), before)

        result = self.runner.invoke(
            app, ["bench", "--size", "30", "--repeats", "1", "--impl", "extra"]
        )
        self.assertEqual(result.exit_code, 2, msg=result.output)

    def test_bench_disagreement_exits_cleanly(self) -> None:
        result = self.runner.invoke(
            app,
            ["bench", "--size", "30", "--repeats", "1", "--plugin", "eq=operator.eq", "--impl", "eq"],
        )
        self.assertEqual(result.exit_code, 1, msg=result.output)
        self.assertIn("Benchmark aborted", result.output)
        self.assertIn("disagrees", result.output)

    def test_report_malformed_json(self) -> None:
        html_path = self.root / "report.html"
        for content in ("{not json", json.dumps({"results": [{"size": 10}]})):
            with self.subTest(content=content):
                results_path = self.root / "results.json"
                results_path.write_text(content)
                result = self.runner.invoke(app, ["report", str(results_path), "-o", str(html_path)])
                self.assertEqual(result.exit_code, 2, msg=result.output)
                self.assertIn("Malformed", result.output)
                self.assertFalse(html_path.exists())


if __name__ == "__main__":
    unittest.main()
