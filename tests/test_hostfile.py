import pytest

from slimlocal.hostfile import (
    MARKER,
    add_host,
    has_marked_entry,
    line_has_host,
    remove_all_hosts,
    remove_host,
    write_file_elevated,
)


@pytest.fixture
def hosts(tmp_path):
    def make(content):
        path = tmp_path / "hosts"
        path.write_text(content, encoding="utf-8")
        return path

    return make


def test_write_file_elevated_direct_write_success(tmp_path):
    path = tmp_path / "hosts.test"
    content = "127.0.0.1 myapp.local # slim\n"
    write_file_elevated(str(path), content)
    assert path.read_text(encoding="utf-8") == content


def test_write_file_elevated_returns_non_permission_error(tmp_path):
    path = tmp_path / "missing" / "hosts.test"
    with pytest.raises(FileNotFoundError):
        write_file_elevated(str(path), "x")


@pytest.mark.parametrize(
    "line, hostname, want",
    [
        ("127.0.0.1 myapp.local # slim", "myapp.local", True),
        ("127.0.0.1 other.local # slim", "myapp.local", False),
        ("127.0.0.1 myapp.local.extra # slim", "myapp.local", False),
        ("# comment", "myapp.local", False),
        ("", "myapp.local", False),
        ("127.0.0.1\tmyapp.local\t# slim", "myapp.local", True),
    ],
)
def test_line_has_host(line, hostname, want):
    assert line_has_host(line, hostname) is want


def test_has_marked_entry():
    content = "127.0.0.1 localhost\n127.0.0.1 myapp.local # slim\n"
    assert has_marked_entry(content, "myapp.local") is True
    assert has_marked_entry(content, "other.local") is False
    assert has_marked_entry("", "myapp.local") is False


def test_has_marked_entry_requires_marker():
    assert has_marked_entry("127.0.0.1 myapp.local\n", "myapp.local") is False


def test_add_host_appends_marked_entry(hosts):
    path = hosts("127.0.0.1 localhost\n")
    add_host("myapp", str(path))
    wrote = path.read_text(encoding="utf-8")
    assert wrote == "127.0.0.1 localhost\n127.0.0.1 myapp.local # slim\n"
    assert MARKER in wrote


def test_add_host_noop_when_entry_already_exists(hosts):
    original = "127.0.0.1 myapp.local # slim\n"
    path = hosts(original)
    add_host("myapp", str(path))
    assert path.read_text(encoding="utf-8") == original


def test_remove_host_removes_only_marked_matching_entry(hosts):
    path = hosts(
        "\n".join(
            [
                "127.0.0.1 localhost",
                "127.0.0.1 myapp.local # slim",
                "127.0.0.1 myapp.local # another-tool",
                "127.0.0.1 api.local # slim",
                "",
            ]
        )
    )
    remove_host("myapp", str(path))
    wrote = path.read_text(encoding="utf-8")
    assert "myapp.local # slim" not in wrote
    assert "myapp.local # another-tool" in wrote
    assert "api.local # slim" in wrote
    assert wrote == (
        "127.0.0.1 localhost\n"
        "127.0.0.1 myapp.local # another-tool\n"
        "127.0.0.1 api.local # slim\n"
    )


def test_remove_all_hosts_removes_all_marked_entries(hosts):
    path = hosts(
        "\n".join(
            [
                "127.0.0.1 localhost",
                "127.0.0.1 myapp.local # slim",
                "127.0.0.1 api.local # slim",
                "127.0.0.1 other.local # another-tool",
                "",
            ]
        )
    )
    remove_all_hosts(str(path))
    wrote = path.read_text(encoding="utf-8")
    assert "# slim" not in wrote
    assert "other.local # another-tool" in wrote


def test_add_then_remove_round_trip(hosts):
    original = "127.0.0.1 localhost\n"
    path = hosts(original)
    add_host("myapp", str(path))
    remove_host("myapp", str(path))
    assert path.read_text(encoding="utf-8") == original


@pytest.mark.parametrize("operation", ["add", "remove", "remove_all"])
def test_host_mutators_propagate_read_errors(tmp_path, operation):
    missing = str(tmp_path / "no-such-hosts")
    with pytest.raises(OSError, match="reading hosts file"):
        if operation == "add":
            add_host("myapp", missing)
        elif operation == "remove":
            remove_host("myapp", missing)
        else:
            remove_all_hosts(missing)