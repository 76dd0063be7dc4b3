"""
Platform facts used by built-ins and conditional directives.

Facts are lowercase tokens in the vocabulary scripts use:

- os: android, dragonfly, freebsd, ios, linux, macos, netbsd, openbsd,
  solaris, windows, ...
- family: unix, windows
- bit: 32, 64
- arch: aarch64, arm, mips, mips64, powerpc, powerpc64, riscv64, s390x,
  sparc64, wasm32, x86, x86_64, ...
- endian: big, little
"""

from __future__ import annotations

import platform as _platform
import struct
import sys
from dataclasses import dataclass
from typing import Dict

_OS_NAMES: Dict[str, str] = {
    "darwin": "macos",
    "win32": "windows",
    "cygwin": "windows",
    "sunos5": "solaris",
    "emscripten": "emscripten",
    "wasi": "wasi",
}

_ARCH_NAMES: Dict[str, str] = {
    "amd64": "x86_64",
    "x86_64": "x86_64",
    "x64": "x86_64",
    "i386": "x86",
    "i486": "x86",
    "i586": "x86",
    "i686": "x86",
    "x86": "x86",
    "arm64": "aarch64",
    "aarch64": "aarch64",
    "aarch64_be": "aarch64",
    "ppc": "powerpc",
    "ppc64": "powerpc64",
    "ppc64le": "powerpc64",
    "mips": "mips",
    "mips64": "mips64",
    "s390x": "s390x",
    "sparc64": "sparc64",
    "riscv64": "riscv64",
    "wasm32": "wasm32",
}


@dataclass(frozen=True)
class PlatformFacts:
    """Read-only platform facts, each a lowercase token."""
    os: str
    family: str
    pointer_width: str
    arch: str
    endian: str

    def as_dict(self) -> Dict[str, str]:
        return {
            "os": self.os,
            "family": self.family,
            "bit": self.pointer_width,
            "arch": self.arch,
            "endian": self.endian,
        }


def _os_name() -> str:
    plat = sys.platform.lower()
    if plat in _OS_NAMES:
        return _OS_NAMES[plat]
    # freebsd13, openbsd7, ... carry a version suffix
    for name in ("freebsd", "openbsd", "netbsd", "dragonfly"):
        if plat.startswith(name):
            return name
    if plat.startswith("linux"):
        return "linux"
    return plat


def _arch_name() -> str:
    machine = _platform.machine().lower()
    if machine.startswith("armv") or machine == "arm":
        return "arm"
    return _ARCH_NAMES.get(machine, machine)


def detect_platform() -> PlatformFacts:
    """Collect the facts of the running interpreter's host."""
    os_name = _os_name()
    return PlatformFacts(
        os=os_name,
        family="windows" if os_name == "windows" else "unix",
        pointer_width=str(struct.calcsize("P") * 8),
        arch=_arch_name(),
        endian=sys.byteorder,
    )


_host: PlatformFacts | None = None


def host_platform() -> PlatformFacts:
    """Get the cached facts of the host platform."""
    global _host
    if _host is None:
        _host = detect_platform()
    return _host
