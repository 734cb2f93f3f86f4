# preamble/context/archive_source.py
import io
import logging
import zipfile

from ..errors import InvalidArchiveError
from .filters import ARCHIVE_RULES, FilterRules

log = logging.getLogger(__name__)


def materialize_archive(data: bytes, rules: FilterRules = ARCHIVE_RULES) -> str:
    """
    Concatenate every text file of an in-memory ZIP archive.

    Entries keep archive order. Unlike the GitHub path nothing is truncated
    here, neither per file nor in total; the generation step still applies
    the total budget.
    """
    try:
        zf = zipfile.ZipFile(io.BytesIO(data), "r")
    except (zipfile.BadZipFile, ValueError) as e:
        raise InvalidArchiveError(str(e)) from e

    out = io.StringIO()
    kept = skipped = 0
    with zf:
        for info in zf.infolist():
            if info.is_dir():
                continue
            path = info.filename
            if not rules.includes(path):
                continue
            try:
                content = zf.read(info).decode("utf-8", errors="replace")
            except (zipfile.BadZipFile, RuntimeError, NotImplementedError) as e:
                # encrypted entries, unsupported compression, CRC errors
                log.warning("Skipping %s: %s", path, e)
                skipped += 1
                continue
            # likely binary even though the extension looked like text
            if "\x00" in content:
                skipped += 1
                continue
            out.write(f"File: {path}\nContent:\n{content}\n\n---\n\n")
            kept += 1

    context = out.getvalue()
    log.info("Archive context: %d files, %d skipped, %d chars", kept, skipped, len(context))
    return context
