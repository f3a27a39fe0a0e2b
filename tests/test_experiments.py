import csv

import pytest

import experiments as exp


@pytest.mark.parametrize("name", sorted(exp.GENERATOR_REGISTRY))
def test_generators_are_seeded(name):
	a = exp.generate_dataset(name, 512, seed=4)
	b = exp.generate_dataset(name, 512, seed=4)
	assert len(a) == 512
	assert a == b


def test_unknown_generator():
	with pytest.raises(ValueError):
		exp.generate_dataset("nope", 10, seed=0)


def test_run_one_roundtrips():
	row = exp.run_one(exp.gen_english_like(4096, seed=2))
	assert row.correctness_ok == 1
	assert row.file_size_bytes == 4096
	assert row.compression_ratio < 1.0
	# each leaf costs a flag bit and 9 value bits, each internal node one flag bit
	assert row.header_bits == 10 * row.unique_symbols + (row.unique_symbols - 1)


def test_run_one_single_byte():
	row = exp.run_one(exp.gen_single_byte(1000))
	assert row.unique_symbols == 2
	assert row.correctness_ok == 1


def test_run_one_empty():
	row = exp.run_one(b"")
	assert row.unique_symbols == 1
	assert row.header_bits == 10
	assert row.correctness_ok == 1


def test_csv_outputs(tmp_path):
	rows = []
	for run_id in (1, 2):
		row = exp.run_one(exp.gen_uniform(300, seed=run_id))
		row.exp_name = "exp1_distribution"
		row.dataset_name = "uniform256"
		row.run_id = run_id
		rows.append(row)

	exp.write_csv(tmp_path / "metrics.csv", rows)
	exp.group_summary(rows, tmp_path / "summary.csv")

	with (tmp_path / "metrics.csv").open(encoding="utf-8") as f:
		metrics = list(csv.DictReader(f))
	assert len(metrics) == 2
	assert metrics[0]["dataset_name"] == "uniform256"

	with (tmp_path / "summary.csv").open(encoding="utf-8") as f:
		summary = list(csv.DictReader(f))
	assert len(summary) == 1
	assert summary[0]["n_runs"] == "2"
	assert float(summary[0]["correctness_ok_rate"]) == 1.0


def test_main_writes_reports(tmp_path, capsys):
	code = exp.main([
		"--outdir", str(tmp_path), "--runs", "1", "--no_plots",
		"--exp1_size_kb", "1", "--exp1_generators", "zipf128,single_byte", "--no_exp2",
	])
	assert code == 0
	assert (tmp_path / "metrics.csv").exists()
	assert (tmp_path / "summary.csv").exists()
	assert "Correctness rate across all runs: 1.000" in capsys.readouterr().out


def test_plots(tmp_path):
	rows = []
	for exp_name, size in (("exp1_distribution", 256), ("exp2_size_scaling", 256), ("exp2_size_scaling", 512)):
		row = exp.run_one(exp.gen_zipf_like(size, seed=1))
		row.exp_name = exp_name
		row.dataset_name = "zipf128"
		rows.append(row)

	exp.plot_experiment_1(rows, tmp_path)
	exp.plot_experiment_2(rows, tmp_path)
	assert (tmp_path / "exp1_compression_ratio.png").exists()
	assert (tmp_path / "exp2_total_time.png").exists()
