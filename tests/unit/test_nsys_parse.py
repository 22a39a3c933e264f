from __future__ import annotations

from pathlib import Path

from cuda_profiler.nsys.model import KernelRecord
from cuda_profiler.nsys.parse import parse_kernel_csv, parse_kernel_csv_file

KERN_SUM_HEADER = "Time (%),Total Time (ns),Instances,Avg (ns),Med (ns),Min (ns),Max (ns),StdDev (ns),Name"


def test_parse_kern_sum_rows_in_order() -> None:
    text = "\n".join(
        [
            KERN_SUM_HEADER,
            '60.0,6000000,3,2000000,2000000,1900000,2100000,100000,"void gemm<float>(float*, int)"',
            "40.0,4000000,8,500000,500000,400000,600000,1000,reduceKernel",
            "",
        ]
    )
    rows = parse_kernel_csv(text)
    assert rows == [
        KernelRecord(name="void gemm<float>(float*, int)", calls=3, total_time_ms=6.0, avg_time_ms=2.0),
        KernelRecord(name="reduceKernel", calls=8, total_time_ms=4.0, avg_time_ms=0.5),
    ]


def test_parse_unit_suffixed_schema() -> None:
    text = "Name,Calls,Total Time,Avg\nk1,\"1,024\",2.5ms,2500us\n"
    assert parse_kernel_csv(text) == [KernelRecord(name="k1", calls=1024, total_time_ms=2.5, avg_time_ms=2.5)]


def test_parse_tolerates_blank_lines_and_crlf() -> None:
    text = "\r\n\r\nName,Instances\r\n\r\nk1,2\r\n\r\n"
    assert parse_kernel_csv(text) == [KernelRecord(name="k1", calls=2)]


def test_parse_requires_header_and_one_row() -> None:
    assert parse_kernel_csv("") == []
    assert parse_kernel_csv("Name,Instances\n") == []
    assert parse_kernel_csv("\n\n  \n") == []


def test_parse_without_name_column_yields_no_rows() -> None:
    assert parse_kernel_csv("Time (%),Total Time (ns)\n50.0,100\n") == []


def test_parse_skips_rows_with_empty_name() -> None:
    text = "Name,Instances\nk1,1\n,99\n\"\",5\nk2,2\n"
    assert [r.name for r in parse_kernel_csv(text)] == ["k1", "k2"]


def test_parse_malformed_rows_degrade_to_absent_fields() -> None:
    text = f"{KERN_SUM_HEADER}\nbogus,not-a-number\n10.0,abc,x,,,,,,k1\n"
    rows = parse_kernel_csv(text)
    # "bogus" row has no Name cell at all.
    assert rows == [KernelRecord(name="k1")]


def test_parse_missing_optional_columns_stay_absent() -> None:
    rows = parse_kernel_csv("Name\nk1\n")
    assert rows == [KernelRecord(name="k1", calls=None, total_time_ms=None, avg_time_ms=None)]


def test_parse_file_strips_bom(tmp_path: Path) -> None:
    p = tmp_path / "x_cuda_gpu_kern_sum.csv"
    p.write_text("\ufeffName,Instances\nk1,1\n", encoding="utf-8")
    assert parse_kernel_csv_file(p) == [KernelRecord(name="k1", calls=1)]
