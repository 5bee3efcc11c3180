# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.

import asyncio
import logging
from pathlib import Path
from typing import Any, Awaitable, Optional

import typer

from ..adapters.local.local_storage import LocalDirectoryHandle
from ..domain.errors import AbortError, FsError
from ..domain.text_codec import SUPPORTED_ENCODINGS
from ..logging_config import setup_logging
from ..services import (
    HandleFilesystem,
    MkdirOptions,
    ReaddirOptions,
    RmdirOptions,
    StatOptions,
    WriteFileOptions,
)

setup_logging()

app = typer.Typer(help="handlefs CLI - POSIX-style access to a handle-based storage root")

logger = logging.getLogger(__name__)

ROOT_OPTION = typer.Option(
    None,
    "--root",
    exists=True,
    file_okay=False,
    dir_okay=True,
    resolve_path=True,
    help="Local directory to use as storage root. Defaults to HANDLEFS_STORAGE_DIR.",
)


def _wire(root: Optional[Path], verbose: bool = False) -> HandleFilesystem:
    """
    Minimal composition root:
      LocalDirectoryHandle (or the process storage root) + HandleFilesystem
    """
    if verbose:
        logging.getLogger().setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")
    if root is None:
        return HandleFilesystem()
    return HandleFilesystem(LocalDirectoryHandle(root))


def _parse_encoding(encoding: Optional[str]) -> Optional[str]:
    """
    Validate --encoding up front.
    Raises Typer BadParameter for names the text codec does not know.
    """
    if encoding is None or encoding.lower() in SUPPORTED_ENCODINGS:
        return encoding
    raise typer.BadParameter(
        f"Unknown encoding: {encoding}. "
        f"Valid options: {', '.join(sorted(SUPPORTED_ENCODINGS))}"
    )


def _run(operation: Awaitable[Any]) -> Any:
    try:
        return asyncio.run(operation)  # type: ignore[arg-type]
    except (FsError, AbortError) as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)


@app.command("ls")
def list_dir(
    path: str = typer.Argument(".", help="Directory to list"),
    root: Optional[Path] = ROOT_OPTION,
    recursive: bool = typer.Option(False, "--recursive", "-R", help="List subdirectories too"),
    long: bool = typer.Option(False, "--long", "-l", help="Prefix entries with d/- kind markers"),
    verbose: bool = typer.Option(False, "--verbose", help="Enable verbose logging"),
):
    """
    List a directory.
    """
    fs = _wire(root, verbose)
    opts = ReaddirOptions(with_file_types=long, recursive=recursive)
    entries = _run(fs.readdir(path, opts))
    for entry in entries:
        if long:
            marker = "d" if entry.is_directory() else "-"
            rel = entry.name if entry.parent_path == "." else f"{entry.parent_path}/{entry.name}"
            typer.echo(f"{marker} {rel}")
        else:
            typer.echo(entry)


@app.command()
def cat(
    path: str = typer.Argument(..., help="File to print"),
    root: Optional[Path] = ROOT_OPTION,
    encoding: Optional[str] = typer.Option(None, "--encoding", help="Decode with this encoding"),
):
    """
    Print a file's content.
    """
    fs = _wire(root)
    content = _run(fs.read_file(path, _parse_encoding(encoding)))
    typer.echo(content, nl=False)


@app.command()
def write(
    path: str = typer.Argument(..., help="File to write"),
    text: str = typer.Argument(..., help="Text to write"),
    root: Optional[Path] = ROOT_OPTION,
    append: bool = typer.Option(False, "--append", help="Append instead of truncating"),
    exclusive: bool = typer.Option(False, "--exclusive", help="Fail if the file exists"),
    encoding: Optional[str] = typer.Option(None, "--encoding", help="Encode text with this encoding"),
):
    """
    Write text to a file.
    """
    fs = _wire(root)
    flag = ("a" if append else "w") + ("x" if exclusive else "")
    opts = WriteFileOptions(encoding=_parse_encoding(encoding), flag=flag)
    _run(fs.write_file(path, text, opts))


@app.command()
def mkdir(
    path: str = typer.Argument(..., help="Directory to create"),
    root: Optional[Path] = ROOT_OPTION,
    parents: bool = typer.Option(False, "--parents", "-p", help="Create missing parents"),
):
    """
    Create a directory.
    """
    fs = _wire(root)
    created = _run(fs.mkdir(path, MkdirOptions(recursive=parents)))
    if created is not None:
        typer.echo(created)


@app.command()
def rm(
    path: str = typer.Argument(..., help="File to remove"),
    root: Optional[Path] = ROOT_OPTION,
):
    """
    Remove a file.
    """
    _run(_wire(root).unlink(path))


@app.command()
def rmdir(
    path: str = typer.Argument(..., help="Directory to remove"),
    root: Optional[Path] = ROOT_OPTION,
    recursive: bool = typer.Option(False, "--recursive", "-r", help="Remove contents too"),
):
    """
    Remove a directory.
    """
    _run(_wire(root).rmdir(path, RmdirOptions(recursive=recursive)))


@app.command()
def stat(
    path: str = typer.Argument(".", help="Path to describe"),
    root: Optional[Path] = ROOT_OPTION,
    bigint: bool = typer.Option(False, "--bigint", help="Include nanosecond timestamps"),
):
    """
    Show synthesized metadata for a path.
    """
    st = _run(_wire(root).stat(path, StatOptions(bigint=bigint)))
    typer.echo(f"type: {'directory' if st.is_directory() else 'file'}")
    typer.echo(f"size: {st.size}")
    typer.echo(f"mtime_ms: {st.mtime_ms}")
    if bigint:
        typer.echo(f"mtime_ns: {st.mtime_ns}")
    typer.echo(f"mtime: {st.mtime.isoformat()}")
