# app.py
import argparse
import json
import logging
import os
import sys
import time
from dataclasses import dataclass

from config import TileConfig
from gettile.assembler import TileAssembler
from gettile.exceptions import GettileError
from gettile.store import ZarrTileStore
from gettile.tile_index import TileIndex

LOG = logging.getLogger("gettile")

USAGE = """\
gettile store.zarr UID devicenickname.channel level offset
       gettile store.zarr UID --multi dev1.ch1,dev2.ch2,... level offset
       gettile store.zarr --multi UID1.dev1.ch1,UID2.dev2.ch2,... level offset"""


@dataclass(frozen=True)
class TileRequest:
    store: str
    uid: int | None
    channels: tuple[str, ...]
    level: int
    offset: int
    multi: bool
    config: str | None = None


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(prog="gettile", usage=USAGE)
    p.add_argument("store")
    p.add_argument("args", nargs="*")
    p.add_argument("--multi", metavar="CHANNELS")
    p.add_argument("--config")
    return p


def parse_request(argv=None) -> TileRequest:
    parser = _build_parser()
    ns = parser.parse_intermixed_args(argv)
    rest = list(ns.args)

    if ns.multi is not None:
        channels = tuple(part.strip() for part in ns.multi.split(",") if part.strip())
        if not channels:
            parser.error("--multi needs at least one channel")
        if len(rest) == 3:
            uid_text, level_text, offset_text = rest
        elif len(rest) == 2:
            uid_text = None
            level_text, offset_text = rest
        else:
            parser.error("expected [UID] LEVEL OFFSET with --multi")
    else:
        if len(rest) != 4:
            parser.error("expected UID CHANNEL LEVEL OFFSET")
        uid_text, channel, level_text, offset_text = rest
        channels = (channel,)

    try:
        uid = int(uid_text) if uid_text is not None else None
        level = int(level_text)
        offset = int(offset_text)
    except ValueError as exc:
        parser.error(f"invalid number: {exc}")
    if uid is not None and uid < 0:
        # -1 selects fully qualified channel names
        uid = None

    return TileRequest(
        store=ns.store,
        uid=uid,
        channels=channels,
        level=level,
        offset=offset,
        multi=ns.multi is not None,
        config=ns.config,
    )


def _configure_logging(level: str, uid: int | None) -> None:
    prefix = f"{os.getpid()} {uid if uid is not None else -1} "
    logging.basicConfig(
        stream=sys.stderr,
        format=prefix + "%(asctime)s %(levelname)s %(message)s",
    )
    logging.getLogger().setLevel(level)


def main(argv=None) -> int:
    begin = time.monotonic()
    argv = sys.argv[1:] if argv is None else list(argv)
    request = parse_request(argv)
    cfg = TileConfig.load(request.config)
    _configure_logging(cfg.log_level, request.uid)

    window = TileIndex.from_client(request.level, request.offset)
    LOG.info(
        "gettile START: %s (time %.9f-%.9f)",
        " ".join(f"'{arg}'" for arg in ["gettile", *argv]),
        window.start_time,
        window.end_time,
    )

    try:
        store = ZarrTileStore(request.store)
        assembler = TileAssembler(
            store,
            uid=request.uid,
            legacy_comments=cfg.legacy_comments,
            comment_suffix=cfg.comment_suffix,
        )
        if request.multi:
            result = assembler.multi_tile(request.channels, request.level, request.offset)
        else:
            result = assembler.tile(request.channels[0], request.level, request.offset)
    except GettileError as exc:
        LOG.error("gettile: %s", exc)
        return 1

    print(json.dumps(result, separators=(",", ":")))
    LOG.info("gettile: finished in %d msec", int((time.monotonic() - begin) * 1000))
    return 0


def cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    cli()
