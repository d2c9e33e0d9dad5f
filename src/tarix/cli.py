from __future__ import annotations

import os
import sys
from argparse import ArgumentParser, Namespace
from logging import Logger
from typing import Optional

from relic.core.cli import (
    CliPlugin,
    CliPluginGroup,
    LogSetupOptions,
    RelicArgParser,
    _SubParsersAction,
    get_file_type_validator,
)
from relic.core.logmsg import BraceMessage

from tarix.errors import TarixError
from tarix.extractor import TarixHandle, extract_member, extract_member_to
from tarix.hashtools import clean_path
from tarix.indexer import ProgressCallback, create_index, default_index_path
from tarix.store import load_index

_SUCCESS = 0
_FAILURE = 1


def _add_tar_argument(parser: ArgumentParser, help_text: str) -> None:
    parser.add_argument(
        "-tar",
        "--tar",
        dest="tar",
        type=get_file_type_validator(exists=True),
        required=True,
        help=help_text,
    )


def _add_index_argument(parser: ArgumentParser, help_text: str) -> None:
    parser.add_argument(
        "-index",
        "--index",
        dest="index",
        type=get_file_type_validator(exists=True),
        required=True,
        help=help_text,
    )


def _add_member_argument(parser: ArgumentParser) -> None:
    parser.add_argument(
        "-file",
        "--file",
        dest="file",
        required=True,
        help="File path to extract from the TAR",
    )


def _progress_logger(logger: Logger) -> ProgressCallback:
    last_step = -1

    def _progress(consumed: int, total: int) -> None:
        nonlocal last_step
        step = consumed * 10 // total
        if step != last_step:
            last_step = step
            logger.info(BraceMessage("  Indexing: {0}% complete", step * 10))

    return _progress


class TarixCli(CliPluginGroup):
    """Root command group; also attaches to `relic` through the `relic.cli` entrypoint group."""

    GROUP = "tarix.cli"

    def _create_parser(
        self, command_group: Optional[_SubParsersAction] = None
    ) -> ArgumentParser:
        name = "tarix"
        desc = "Random access to tar archive members through an offset index."
        if command_group is None:
            return RelicArgParser(name, description=desc)
        return command_group.add_parser(name, description=desc)

    def load_plugins(self) -> None:
        for plugin in (
            TarixIndexCli,
            TarixExtractCli,
            TarixListCli,
            TarixPrintFromPathCli,
        ):
            plugin(parent=self.subparsers)
        super().load_plugins()

    def run(
        self,
        *,
        logger: Optional[Logger] = None,
        log_setup_options: Optional[LogSetupOptions] = None,
    ) -> None:
        # Usage errors exit with 2 in relic; tarix reports every failure as 1
        try:
            super().run(logger=logger, log_setup_options=log_setup_options)
        except SystemExit as sys_exit:
            if sys_exit.code not in (None, _SUCCESS):
                sys.exit(_FAILURE)
            raise


class TarixIndexCli(CliPlugin):
    def _create_parser(
        self, command_group: Optional[_SubParsersAction] = None
    ) -> ArgumentParser:
        parser: ArgumentParser
        desc = """Scan a TAR archive once and write the offset index of its regular files.
            The index is a CSV file, despite the historical '.index.json' default name."""
        if command_group is None:
            parser = RelicArgParser("index", description=desc)
        else:
            parser = command_group.add_parser("index", description=desc)

        _add_tar_argument(parser, "TAR file to index")
        parser.add_argument(
            "-output",
            "--output",
            dest="output",
            default=None,
            help="Output index file (default: <tar>.index.json)",
        )
        return parser

    def command(self, ns: Namespace, *, logger: Logger) -> Optional[int]:
        tar_path: str = ns.tar
        index_path: str = ns.output or default_index_path(tar_path)

        logger.info(BraceMessage("Indexing `{0}`", tar_path))
        try:
            index = create_index(
                tar_path, index_path, on_progress=_progress_logger(logger)
            )
        except TarixError as e:
            logger.error(BraceMessage("Error: {0}", e))
            return _FAILURE

        logger.info(BraceMessage("Created index with {0} files", len(index)))
        logger.info(BraceMessage("Index saved to `{0}`", index_path))
        return _SUCCESS


class TarixExtractCli(CliPlugin):
    def _create_parser(
        self, command_group: Optional[_SubParsersAction] = None
    ) -> ArgumentParser:
        parser: ArgumentParser
        desc = """Extract a single file from a TAR archive using its index.
            Use '-' as the output to write the file to stdout."""
        if command_group is None:
            parser = RelicArgParser("extract", description=desc)
        else:
            parser = command_group.add_parser("extract", description=desc)

        _add_tar_argument(parser, "TAR file to extract from")
        _add_index_argument(parser, "Index file for the TAR")
        _add_member_argument(parser)
        parser.add_argument(
            "-output",
            "--output",
            dest="output",
            default=None,
            help="Output file (default: extracted in current dir, '-' for stdout)",
        )
        return parser

    def command(self, ns: Namespace, *, logger: Logger) -> Optional[int]:
        tar_path: str = ns.tar
        index_path: str = ns.index
        member_path: str = ns.file
        output: str = ns.output or os.path.basename(clean_path(member_path))

        try:
            if output == "-":
                data = extract_member(tar_path, index_path, member_path)
                sys.stdout.buffer.write(data)
                sys.stdout.buffer.flush()
                return _SUCCESS
            size = extract_member_to(tar_path, index_path, member_path, output)
        except TarixError as e:
            logger.error(BraceMessage("Error: {0}", e))
            return _FAILURE

        logger.info(
            BraceMessage(
                "Extracted {0} to {1} (size: {2} bytes)", member_path, output, size
            )
        )
        return _SUCCESS


class TarixListCli(CliPlugin):
    def _create_parser(
        self, command_group: Optional[_SubParsersAction] = None
    ) -> ArgumentParser:
        parser: ArgumentParser
        desc = """List the hashed keys and sizes recorded in an index file."""
        if command_group is None:
            parser = RelicArgParser("list", description=desc)
        else:
            parser = command_group.add_parser("list", description=desc)

        _add_index_argument(parser, "Index file to list")
        return parser

    def command(self, ns: Namespace, *, logger: Logger) -> Optional[int]:
        index_path: str = ns.index

        try:
            index = load_index(index_path)
        except TarixError as e:
            logger.error(BraceMessage("Error: {0}", e))
            return _FAILURE

        logger.info(BraceMessage("TAR archive contains {0} files", len(index)))
        logger.info(BraceMessage("Total content size: {0} bytes\n", index.total_size))
        logger.info("Files:")
        for key, entry in index.items():
            logger.info(BraceMessage("- {0} ({1} bytes)", key, entry.size))
        return _SUCCESS


class TarixPrintFromPathCli(CliPlugin):
    def _create_parser(
        self, command_group: Optional[_SubParsersAction] = None
    ) -> ArgumentParser:
        parser: ArgumentParser
        desc = """Print a single file from a TAR archive to stdout, followed by a newline."""
        if command_group is None:
            parser = RelicArgParser("printfrompath", description=desc)
        else:
            parser = command_group.add_parser("printfrompath", description=desc)

        _add_tar_argument(parser, "TAR file to extract from")
        _add_index_argument(parser, "Index file for the TAR")
        _add_member_argument(parser)
        return parser

    def command(self, ns: Namespace, *, logger: Logger) -> Optional[int]:
        tar_path: str = ns.tar
        index_path: str = ns.index
        member_path: str = ns.file

        try:
            with TarixHandle.open(tar_path, index_path) as tarix:
                data = tarix.read(member_path)
        except TarixError as e:
            logger.error(BraceMessage("Error: {0}", e))
            return _FAILURE

        sys.stdout.buffer.write(data + b"\n")
        sys.stdout.buffer.flush()
        return _SUCCESS


CLI = TarixCli(
    load_on_create=False
)  # Built-in commands attach when the root command is run

if __name__ == "__main__":
    CLI.run()

__all__ = [
    "CLI",
    "TarixCli",
    "TarixIndexCli",
    "TarixExtractCli",
    "TarixListCli",
    "TarixPrintFromPathCli",
]
