"""Integration tests running run_filter on files written to disk."""

import random

import pytest

from bedfilter.config import load_config
from bedfilter.pipeline import run_filter


def write_inputs(tmp_path, eol: str, seed: int = 7):
    rng = random.Random(seed)
    header = [
        "##fileformat=VCFv4.2",
        "##source=integration",
        "#CHROM\tPOS\tID\tREF\tALT",
    ]
    records = []
    for i in range(5000):
        chrom = rng.choice(["1", "2", "X", "chr3"])
        records.append(f"{chrom}\t{rng.randint(1, 2000)}\tid{i}\tA\tG")
    sites = sorted({(r.split("\t")[0].replace("chr", ""), r.split("\t")[1]) for r in records[::4]})

    vcf = tmp_path / f"input_{len(eol)}.vcf"
    vcf.write_bytes(eol.join(header + records).encode() + eol.encode())
    bed = tmp_path / f"sites_{len(eol)}.bed"
    bed.write_bytes(b"".join(f"{c}\t{p}{eol}".encode() for c, p in sites))
    return vcf, bed, header, records, set(sites)


def config_for(vcf, bed, out, **overrides):
    cfg = load_config()
    cfg.update({"bed_path": str(bed), "in_path": str(vcf), "output_file": str(out)})
    cfg.update(overrides)
    return cfg


def expected_records(records, sites, normalize):
    kept = []
    for record in records:
        chrom, pos = record.split("\t")[:2]
        if normalize:
            key = (chrom.replace("chr", ""), pos)
        else:
            key = (chrom, pos)
        if key in sites:
            kept.append(record)
    return kept


@pytest.mark.parametrize("normalize", [False, True])
def test_single_worker_output_is_exact(tmp_path, normalize):
    vcf, bed, header, records, sites = write_inputs(tmp_path, "\n")
    out = tmp_path / "out.vcf"
    stats = run_filter(config_for(vcf, bed, out, concurrency=1, normalize_chromosomes=normalize))

    expected = expected_records(records, sites, normalize)
    assert out.read_text().split("\n") == header + expected + [""]
    assert stats.records_read == len(records)
    assert stats.records_matched == len(expected)


def test_lf_and_crlf_agree(tmp_path):
    lf_vcf, lf_bed, *_ = write_inputs(tmp_path, "\n")
    crlf_vcf, crlf_bed, *_ = write_inputs(tmp_path, "\r\n")
    lf_out = tmp_path / "lf.vcf"
    crlf_out = tmp_path / "crlf.vcf"

    run_filter(config_for(lf_vcf, lf_bed, lf_out, concurrency=1))
    run_filter(config_for(crlf_vcf, crlf_bed, crlf_out, concurrency=1))

    assert crlf_out.read_bytes() == lf_out.read_bytes().replace(b"\n", b"\r\n")


def test_many_workers_same_set_of_lines(tmp_path):
    vcf, bed, header, records, sites = write_inputs(tmp_path, "\n")
    single = tmp_path / "single.vcf"
    multi = tmp_path / "multi.vcf"
    ordered = tmp_path / "ordered.vcf"

    run_filter(config_for(vcf, bed, single, concurrency=1))
    run_filter(config_for(vcf, bed, multi, concurrency=8, queue_size=5))
    run_filter(config_for(vcf, bed, ordered, concurrency=8, queue_size=5, preserve_order=True))

    single_lines = single.read_text().split("\n")
    multi_lines = multi.read_text().split("\n")
    assert multi_lines[: len(header)] == header
    assert sorted(multi_lines) == sorted(single_lines)
    assert ordered.read_text() == single.read_text()


def test_idempotent(tmp_path):
    vcf, bed, *_ = write_inputs(tmp_path, "\n")
    first = tmp_path / "first.vcf"
    second = tmp_path / "second.vcf"
    run_filter(config_for(vcf, bed, first, concurrency=1))
    run_filter(config_for(vcf, bed, second, concurrency=1))
    assert first.read_bytes() == second.read_bytes()
