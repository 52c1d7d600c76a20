import pytest

# Shared fixtures for the include tests:
# - `write` puts a file under the test's tmp_path and returns its path
# - `lib_root` is a fake installed library, `mylib-1.0/include/defs.hrl`,
#   and `lib_dir` the resolver that knows only about it
# ZINC_* variables are cleared so the developer's environment cannot leak in.


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    for var in ("ZINC_LIB_PATH", "ZINC_INCLUDE_PATH", "ZINC_HEADER_SUFFIXES"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def write(tmp_path):
    def _write(name, text):
        path = tmp_path / name
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
        return path
    return _write


@pytest.fixture
def lib_root(write):
    path = write("libs/mylib-1.0/include/defs.hrl", "-record(librec, {a = 1}).\n-define(LIBMAC, 7).\n")
    return path.parent.parent


@pytest.fixture
def lib_dir(lib_root):
    calls = []

    def _lib_dir(name):
        calls.append(name)
        return lib_root if name == "mylib" else None

    _lib_dir.calls = calls
    return _lib_dir
