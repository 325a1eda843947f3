import os
import shlex
import sys
import tempfile
from pathlib import Path

import pytest

# Point CONFIG_PATH at a throwaway config before any grepfix import reads it.
_tmp_dir = tempfile.TemporaryDirectory(prefix="pytest_config_")
_config_file = Path(_tmp_dir.name) / "config.yaml"
_config_file.write_text(
    """
search:
  program: ""
  async: false

auth:
  token: test-token-123

logging:
  level: DEBUG
  json: false
"""
)
os.environ["CONFIG_PATH"] = str(_config_file)


# Minimal grep: options are ignored, the first other argument is a Python
# regex, the rest are files or directories (default "."). Prints
# file:line:col:text records and exits 1 when nothing matched.
FAKE_GREP = r'''
import os
import re
import sys

args = [arg for arg in sys.argv[1:] if not arg.startswith("-")]
if not args:
    sys.stderr.write("fakegrep: no pattern given\n")
    sys.exit(2)

pattern = re.compile(args[0])
found = False
for root in args[1:] or ["."]:
    if not os.path.exists(root):
        sys.stderr.write(f"fakegrep: {root}: No such file or directory\n")
        continue
    if os.path.isfile(root):
        names = [root]
    else:
        names = sorted(
            os.path.join(dirpath, name)
            for dirpath, _, filenames in os.walk(root)
            for name in filenames
        )
    for name in names:
        with open(name, encoding="utf-8") as handle:
            for number, line in enumerate(handle, 1):
                match = pattern.search(line)
                if match:
                    found = True
                    print(f"{os.path.normpath(name)}:{number}:{match.start() + 1}:{line.rstrip()}")
sys.exit(0 if found else 1)
'''


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Workspace with a few text files to search and edit."""
    root = tmp_path / "workspace"
    root.mkdir()
    (root / "alpha.txt").write_text("foo one\nbar two\nfoo foo three\n")
    (root / "beta.txt").write_text("nothing here\nfoo at the end\n")
    (root / "notes").mkdir()
    (root / "notes" / "gamma.md").write_text("no match in this file\n")
    return root


@pytest.fixture
def fake_grep(tmp_path: Path) -> str:
    """Command line of a grep-like program that prints vimgrep records."""
    script = tmp_path / "fakegrep.py"
    script.write_text(FAKE_GREP)
    return f"{shlex.quote(sys.executable)} {shlex.quote(str(script))}"


@pytest.fixture
def make_settings(workspace: Path, fake_grep: str):
    """Build Settings for the test workspace, overriding fields as needed."""
    from grepfix.config import Settings

    def factory(**overrides: object) -> Settings:
        values: dict[str, object] = {
            "auth_token": "test-token-123",
            "grep_program": fake_grep,
            "workspace_root": str(workspace),
            "search_async": False,
            "search_highlight": True,
            "search_timeout_seconds": 30,
            "log_json": False,
        }
        values.update(overrides)
        return Settings(**values)

    return factory
