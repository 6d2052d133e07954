import os
import sys
import time

import pytest

from corenet import util


def test_to_upper_and_lower():
    assert util.to_upper("hello") == "HELLO"
    assert util.to_lower("HELLO") == "hello"
    assert util.to_upper("Mix3d-ü") == "MIX3D-ü"


def test_current_clocks_agree():
    ms = util.current_ms()
    us = util.current_us()
    assert abs(us // 1000 - ms) < 1000
    assert abs(ms - int(time.time() * 1000)) < 1000


def test_elapsed_ms_monotonic():
    first = util.elapsed_ms()
    second = util.elapsed_ms()
    assert second >= first


def test_thread_id_matches_native():
    import threading

    assert util.thread_id() == threading.get_native_id()


def test_thread_name_set_and_truncated():
    original = util.thread_name()
    try:
        util.set_thread_name("brand_new_thread_name")
        name = util.thread_name()
    finally:
        util.set_thread_name(original)
    assert name == "brand_new_threa"


def test_time_to_str_default_format_round_trip():
    ts = util.str_to_time("2021-01-15 12:00:00")
    text = util.time_to_str(ts)
    assert len(text) == 19
    assert text[4] == "-" and text[13] == ":"


def test_str_to_time_differences():
    base = util.str_to_time("2021-01-15 12:00:00")
    assert util.str_to_time("2021-01-15 12:00:01") - base == 1
    assert util.str_to_time("2021-01-15 12:01:00") - base == 60


def test_str_to_time_invalid_returns_zero():
    assert util.str_to_time("not a date") == 0
    assert util.str_to_time("2021/01/15", "%Y-%m-%d") == 0


def test_time_to_str_custom_format():
    assert util.time_to_str(0, "%%") == "%"
    assert util.time_to_str(0, "%Y") in ("1969", "1970")


def test_backtrace_innermost_first():
    def inner_frame():
        return util.backtrace()

    frames = inner_frame()
    assert frames[0].startswith("inner_frame ")
    assert frames[1].startswith("test_backtrace_innermost_first ")


def test_backtrace_size_limits_frames():
    assert len(util.backtrace(3, 1)) == 2
    assert util.backtrace(1, 1) == []


def test_backtrace_to_string_prefix():
    def caller():
        return util.backtrace_to_string(prefix="    ")

    text = caller()
    lines = text.splitlines()
    assert lines[0].startswith("    caller ")
    assert all(line.startswith("    ") for line in lines)
    assert text.endswith("\n")


@pytest.mark.parametrize(
    "value,size,expected",
    [
        (0x1234, 2, 0x3412),
        (0x12345678, 4, 0x78563412),
        (0x0102030405060708, 8, 0x0807060504030201),
    ],
)
def test_byteswap(value, size, expected):
    assert util.byteswap(value, size) == expected
    assert util.byteswap(expected, size) == value


def test_byteswap_bad_size():
    with pytest.raises(ValueError):
        util.byteswap(1, 3)


def test_byteswap_conditional():
    value = 0x12345678
    swapped = 0x78563412
    little = util.byteswap_on_little_endian(value, 4)
    big = util.byteswap_on_big_endian(value, 4)
    if sys.byteorder == "little":
        assert (little, big) == (swapped, value)
    else:
        assert (little, big) == (value, swapped)


def test_list_all_files(tmp_path):
    root = str(tmp_path)
    (tmp_path / "a.cpp").write_text("x")
    (tmp_path / "b.h").write_text("x")
    (tmp_path / "sub").mkdir()
    (tmp_path / "sub" / "c.cpp").write_text("x")
    assert sorted(util.list_all_files(root, ".cpp")) == [
        root + "/a.cpp",
        root + "/sub/c.cpp",
    ]
    assert len(util.list_all_files(root, "")) == 3


def test_list_all_files_missing(tmp_path):
    assert util.list_all_files(str(tmp_path / "nope"), "") == []


def test_mkdir_p(tmp_path):
    target = str(tmp_path / "a" / "b" / "c")
    assert util.mkdir_p(target) is True
    assert os.path.isdir(target)
    assert util.mkdir_p(target) is True


def test_mkdir_p_fails_under_file(tmp_path):
    blocker = tmp_path / "file"
    blocker.write_text("x")
    assert util.mkdir_p(str(blocker / "sub")) is False


def test_is_running_pidfile(tmp_path):
    pidfile = tmp_path / "pid"
    assert util.is_running_pidfile(str(pidfile)) is False
    pidfile.write_text(f"{os.getpid()}\n")
    assert util.is_running_pidfile(str(pidfile)) is True
    pidfile.write_text("1\n")
    assert util.is_running_pidfile(str(pidfile)) is False
    pidfile.write_text("")
    assert util.is_running_pidfile(str(pidfile)) is False


def test_unlink(tmp_path):
    path = tmp_path / "f"
    assert util.unlink(str(path)) is True
    assert util.unlink(str(path), True) is False
    path.write_text("x")
    assert util.unlink(str(path)) is True
    assert not path.exists()


def test_rm_tree(tmp_path):
    tree = tmp_path / "tree"
    (tree / "x" / "y").mkdir(parents=True)
    (tree / "x" / "y" / "f").write_text("x")
    (tree / "g").write_text("x")
    assert util.rm(str(tree)) is True
    assert not tree.exists()
    assert util.rm(str(tree)) is True


def test_mv_replaces_destination(tmp_path):
    src = tmp_path / "src"
    dst = tmp_path / "dst"
    src.write_text("new")
    dst.mkdir()
    (dst / "old").write_text("old")
    assert util.mv(str(src), str(dst)) is True
    assert dst.read_text() == "new"
    assert not src.exists()


def test_symlink_and_realpath(tmp_path):
    target = tmp_path / "target"
    target.write_text("x")
    link = tmp_path / "link"
    link.write_text("in the way")
    assert util.symlink(str(target), str(link)) is True
    assert os.path.islink(link)
    assert util.realpath(str(link)) == os.path.realpath(str(target))


def test_realpath_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        util.realpath(str(tmp_path / "missing"))


@pytest.mark.parametrize(
    "path,expected",
    [("", "."), ("/a", "/"), ("a", "."), ("a/b/c", "a/b"), ("a/b/", "a/b")],
)
def test_dirname(path, expected):
    assert util.dirname(path) == expected


@pytest.mark.parametrize(
    "path,expected",
    [("", ""), ("abc", "abc"), ("a/b/c", "c"), ("a/b/", ""), ("/x", "x")],
)
def test_basename(path, expected):
    assert util.basename(path) == expected


def test_open_for_write_creates_dirs(tmp_path):
    target = tmp_path / "deep" / "er" / "file.txt"
    with util.open_for_write(str(target), "w") as handle:
        handle.write("hello")
    with util.open_for_read(str(target), "r") as handle:
        assert handle.read() == "hello"


def test_open_for_read_missing(tmp_path):
    with pytest.raises(FileNotFoundError):
        util.open_for_read(str(tmp_path / "missing"), "r")


def test_to_char():
    assert util.to_char("A") == 65
    assert util.to_char("") == 0
    assert util.to_char(None) == 0
    assert util.to_char("é") == -61


@pytest.mark.parametrize(
    "text,expected",
    [
        ("123", 123),
        ("  -5", -5),
        ("12abc", 12),
        ("", 0),
        (None, 0),
        ("abc", 0),
        ("99999999999999999999", -1),
        ("+7", 7),
    ],
)
def test_atoi(text, expected):
    assert util.atoi(text) == expected


@pytest.mark.parametrize(
    "text,expected",
    [
        ("3.5", 3.5),
        ("1e3x", 1000.0),
        ("", 0.0),
        (None, 0.0),
        ("abc", 0.0),
        ("  -2.5e-1", -0.25),
        ("7e", 7.0),
        (".5", 0.5),
    ],
)
def test_atof(text, expected):
    assert util.atof(text) == expected


def test_url_encode():
    assert util.url_encode("abc-._~") == "abc-._~"
    assert util.url_encode("a b") == "a+b"
    assert util.url_encode("a b", False) == "a%20b"
    assert util.url_encode("a=b&c") == "a=b%26c"
    assert util.url_encode("中") == "%E4%B8%AD"


def test_url_decode():
    assert util.url_decode("a+b") == "a b"
    assert util.url_decode("a+b", False) == "a+b"
    assert util.url_decode("%E4%B8%AD") == "中"
    assert util.url_decode("%4") == "%4"
    assert util.url_decode("100%") == "100%"
    assert util.url_decode("%zz") == "%zz"
    assert util.url_decode("%41%42") == "AB"


@pytest.mark.parametrize("text", ["hello world", "sub[1]=1&x=中文", "a+b%c"])
def test_url_round_trip(text):
    assert util.url_decode(util.url_encode(text)) == text
    assert util.url_decode(util.url_encode(text, False), False) == text


def test_trim():
    assert util.trim("  ab  ") == "ab"
    assert util.trim("   ") == ""
    assert util.trim("xxabxx", "x") == "ab"


def test_trim_left():
    assert util.trim_left("  ab ") == "ab "
    assert util.trim_left("\t\r\n") == ""


def test_trim_right():
    assert util.trim_right("ab  ") == "a"
    assert util.trim_right(" \n") == ""