import stat
import subprocess
from pathlib import Path

import pytest

from wslsetup.core.errors import EscalationUnavailable, FilesystemError, PermissionDenied
from wslsetup.core.models import Privilege
from wslsetup.rendering.io import atomic_write_text
from wslsetup.writers import LocalWriter, ScopedWriter, SudoElevatedWriter
from wslsetup.writers import elevation


def test_atomic_write_sets_mode_and_leaves_no_temp(tmp_path: Path):
    dest = tmp_path / "nested" / "out.conf"

    atomic_write_text(dest, "hello\n", mode=0o600)

    assert dest.read_text() == "hello\n"
    assert stat.S_IMODE(dest.stat().st_mode) == 0o600
    assert [p.name for p in dest.parent.iterdir()] == ["out.conf"]


def test_local_writer_translates_permission_error(tmp_path: Path, monkeypatch):
    def _refuse(*args, **kwargs):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr("wslsetup.writers.local.atomic_write_bytes", _refuse)

    with pytest.raises(PermissionDenied):
        LocalWriter().write(tmp_path / "x", b"data", 0o644)


def test_scoped_writer_routes_by_privilege(tmp_path: Path, elevated):
    writer = ScopedWriter(elevated=elevated)

    writer.write(tmp_path / "user.conf", b"u", Privilege.USER, 0o644)
    writer.write(tmp_path / "root.conf", b"r", Privilege.ELEVATED, 0o644)

    assert elevated.calls == [("write", tmp_path / "root.conf")]


def test_local_writer_translates_other_os_errors(tmp_path: Path):
    dest = tmp_path / "wsl.conf"
    dest.mkdir()

    with pytest.raises(FilesystemError, match="Is a directory") as excinfo:
        LocalWriter().write(dest, b"[boot]\n", 0o644)

    assert isinstance(excinfo.value.__cause__, IsADirectoryError)
    assert excinfo.value.path == dest


def test_local_writer_tree_onto_regular_file(tmp_path: Path):
    src = tmp_path / "src"
    src.mkdir()
    (src / "init.lua").write_text("-- nvim")
    dest = tmp_path / "dest"
    dest.write_text("file")

    with pytest.raises(FilesystemError):
        LocalWriter().copy(src, dest)

    assert dest.read_text() == "file"


def test_local_writer_exists_translates_permission_error(tmp_path: Path, monkeypatch):
    def _refuse(self, *args, **kwargs):
        raise PermissionError(13, "Permission denied")

    monkeypatch.setattr(Path, "exists", _refuse)

    with pytest.raises(PermissionDenied, match="stat"):
        LocalWriter().exists(tmp_path / "sudoers.d" / "mount-nopasswd")


def test_scoped_writer_exists_uses_elevated_capability(tmp_path: Path, monkeypatch):
    locked = tmp_path / "sudoers.d" / "mount-nopasswd"
    asked: list[Path] = []

    class _Elevated(LocalWriter):
        def exists(self, path: Path) -> bool:
            asked.append(path)
            return True

    def _refuse(self, *args, **kwargs):
        raise PermissionError(13, "Permission denied")

    writer = ScopedWriter(elevated=_Elevated())
    monkeypatch.setattr(Path, "exists", _refuse)

    assert writer.exists(locked, Privilege.ELEVATED) is True
    assert asked == [locked]
    with pytest.raises(PermissionDenied):
        writer.exists(locked, Privilege.USER)


class _FakeSudo:
    def __init__(self, fail_on: str | None = None, stderr: str = "") -> None:
        self.commands: list[list[str]] = []
        self.fail_on = fail_on
        self.stderr = stderr

    def __call__(self, cmd, **kwargs):
        cmd = list(cmd)
        self.commands.append(cmd)
        if self.fail_on is not None and self.fail_on in cmd:
            if kwargs.get("check", True):
                raise subprocess.CalledProcessError(1, cmd, output="", stderr=self.stderr)
            return subprocess.CompletedProcess(cmd, 1, stdout="", stderr=self.stderr)
        return subprocess.CompletedProcess(cmd, 0, stdout=b"content", stderr="")


@pytest.fixture
def fake_sudo(monkeypatch):
    monkeypatch.setattr(elevation.shutil, "which", lambda name: f"/usr/bin/{name}")

    def _install(**kwargs) -> _FakeSudo:
        fake = _FakeSudo(**kwargs)
        monkeypatch.setattr(elevation, "run_logged", fake)
        return fake

    return _install


def test_sudo_write_stages_then_moves(fake_sudo):
    fake = fake_sudo()
    dest = Path("/etc/wsl.conf")

    SudoElevatedWriter().write(dest, b"[boot]\n", 0o644)

    install, move = fake.commands
    assert install[:6] == ["sudo", "-n", "install", "-D", "-m", "644"]
    assert install[-1] == "/etc/wsl.conf.wslsetup-tmp"
    assert not Path(install[6]).exists()
    assert move == ["sudo", "-n", "mv", "-f", "/etc/wsl.conf.wslsetup-tmp", "/etc/wsl.conf"]


def test_sudo_password_prompt_is_escalation_unavailable(fake_sudo):
    fake_sudo(fail_on="install", stderr="sudo: a password is required\n")

    with pytest.raises(EscalationUnavailable):
        SudoElevatedWriter().write(Path("/etc/fstab"), b"x", 0o644)


def test_sudo_other_failure_is_permission_denied(fake_sudo):
    fake_sudo(fail_on="chmod", stderr="chmod: cannot access '/etc/x': Read-only file system\n")

    with pytest.raises(PermissionDenied, match="Read-only file system"):
        SudoElevatedWriter().chmod(Path("/etc/x"), 0o440)


def test_failed_move_cleans_staged_copy(fake_sudo):
    fake = fake_sudo(fail_on="mv", stderr="mv: cannot move\n")

    with pytest.raises(PermissionDenied):
        SudoElevatedWriter().write(Path("/etc/fstab"), b"x", 0o644)

    assert fake.commands[-1] == ["sudo", "-n", "rm", "-f", "/etc/fstab.wslsetup-tmp"]


def test_sudo_read_returns_bytes(fake_sudo):
    fake = fake_sudo()

    data = SudoElevatedWriter().read(Path("/etc/sudoers.d/mount-nopasswd"))

    assert data == b"content"
    assert fake.commands == [["sudo", "-n", "cat", "/etc/sudoers.d/mount-nopasswd"]]


def test_sudo_exists_present(fake_sudo):
    fake = fake_sudo()

    assert SudoElevatedWriter().exists(Path("/etc/sudoers.d/mount-nopasswd")) is True
    assert fake.commands[0][:5] == ["sudo", "-n", "test", "-e", "/etc/sudoers.d/mount-nopasswd"]


def test_sudo_exists_absent(fake_sudo):
    fake_sudo(fail_on="test")

    assert SudoElevatedWriter().exists(Path("/etc/sudoers.d/mount-nopasswd")) is False


def test_sudo_exists_needs_password(fake_sudo):
    fake_sudo(fail_on="test", stderr="sudo: a password is required\n")

    with pytest.raises(EscalationUnavailable):
        SudoElevatedWriter().exists(Path("/etc/sudoers.d/mount-nopasswd"))


def test_sudo_missing_binary(monkeypatch):
    monkeypatch.setattr(elevation.shutil, "which", lambda name: None)

    with pytest.raises(EscalationUnavailable, match="not found"):
        SudoElevatedWriter().chmod(Path("/etc/fstab"), 0o644)


def test_default_elevated_writer_as_root(monkeypatch):
    monkeypatch.setattr(elevation, "is_root", lambda: True)
    assert isinstance(elevation.default_elevated_writer(), LocalWriter)

    monkeypatch.setattr(elevation, "is_root", lambda: False)
    assert isinstance(elevation.default_elevated_writer(), SudoElevatedWriter)
