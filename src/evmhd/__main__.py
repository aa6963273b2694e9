"""
evmhd cli
"""
import argparse
import json
import os
import sys
from getpass import getpass

import evmhd
import evmhd.keys
from evmhd import __version__
from evmhd import ecmath
from evmhd.address import public_key_to_address
from evmhd.bips import bip39
from evmhd.bips.bip32 import HDNode
from evmhd.config import Config
from evmhd.config import DEFAULT_CONFIG_DIR
from evmhd.errors import EvmHDError
from evmhd.signature import from_compact
from evmhd.signature import to_compact
from evmhd.wallet.account import Reader
from evmhd.wallet.account import Signer


class RawDescriptionDefaultsHelpFormatter(
    argparse.RawDescriptionHelpFormatter, argparse.ArgumentDefaultsHelpFormatter
):
    pass


class ExplicitOption(argparse.Action):
    """
    Custom Action used for checking whether an option has been set explicitly
    (rather than by default)
    """

    def __call__(self, parser, namespace, values, option_string=None):
        setattr(namespace, self.dest, values)
        setattr(namespace, self.dest + "__explicit", True)


def add_common_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--config-dir",
        type=str,
        action=ExplicitOption,
        help="Directory to look for optional config file (config.toml or config.json). "
        + "TOML will take precedence over JSON if both files are defined, "
        + "but TOML is only available for python 3.11+ ",
        default=DEFAULT_CONFIG_DIR,
    )
    parser.add_argument(
        "-L",
        "--log-level",
        default="error",
        action=ExplicitOption,
        metavar="LOG_LEVEL",
        choices=["trace", "debug", "info", "warning", "error"],
        help="log level, e.g. 'trace', 'debug', 'info', 'warning', or 'error'",
    )


def format_option(o):
    format_map = {
        "b": "bin",
        "x": "hex",
        "raw": "raw",
        "bin": "bin",
        "hex": "hex",
    }
    return format_map[o]


def add_input_arguments(
    parser: argparse.ArgumentParser,
    in_file_help: str = "input data file",
    include_input_format: bool = True,
):
    parser.add_argument(
        "--in-file",
        "-in",
        "-i",
        default="-",
        type=argparse.FileType("r"),
        help=in_file_help,
    )
    if include_input_format:
        parser.add_argument(
            "-1",
            "--input-format",
            metavar="INPUT_FORMAT",
            nargs="?",
            default="hex",
            const="raw",
            action=ExplicitOption,
            type=format_option,
            help="raw binary (-1), binary string (-1b), or hexadecimal string (-1x)",
        )


def add_output_arguments(
    parser: argparse.ArgumentParser,
    out_file_help: str = "output data file",
    include_output_format: bool = True,
):
    parser.add_argument(
        "--out-file",
        "-out",
        "-o",
        default="-",
        type=argparse.FileType("w"),
        help=out_file_help,
    )
    if include_output_format:
        parser.add_argument(
            "-0",
            "--output-format",
            metavar="OUTPUT_FORMAT",
            default="hex",
            const="raw",
            nargs="?",
            action=ExplicitOption,
            type=format_option,
            help="raw binary (-0), binary string (-0b), or hexadecimal string (-0x)",
        )


def add_key_source_arguments(parser: argparse.ArgumentParser):
    parser.add_argument(
        "--from-seed",
        action="store_true",
        help="input is a BIP39 seed (hex) rather than a mnemonic phrase",
    )
    parser.add_argument(
        "--passphrase",
        "-p",
        action="store_true",
        help="prompt for a BIP39 passphrase",
    )


def setup_parser() -> argparse.ArgumentParser:
    """
    Setup argument parser
    Returns:
        argparse.ArgumentParser
    """
    parser = argparse.ArgumentParser(
        prog="evmhd",
        description="""evmhd derives and signs with BIP32 / BIP44 keys for EVM chains.

Mnemonic phrases and seeds are read from stdin (or --in-file) so they do not end up
in shell history.

Examples:
    $ evmhd mnemonic

    $ echo <mnemonic-phrase> | evmhd derive "m/44'/60'/0'/0/0"

    $ echo <mnemonic-phrase> | evmhd sign "hello world"
""",
        formatter_class=RawDescriptionDefaultsHelpFormatter,
    )
    parser.add_argument("-v", "-V", "--version", action="version", version=__version__)
    add_common_arguments(parser)

    sub_parser = parser.add_subparsers(
        dest="subcommand",
        metavar="[subcommand]",
        description="""
Use evmhd <subcommand> -h for help on each command""",
    )

    key_parser = sub_parser.add_parser(
        "key",
        help="Generate private key",
        description="Generate a random secp256k1 private key.",
    )
    add_common_arguments(key_parser)
    add_output_arguments(key_parser)

    pubkey_parser = sub_parser.add_parser(
        "pubkey",
        help="Calculate public key",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="""
Calculate public key from private key. If the public key is provided as input, this
sub-command may be used to compress / un-compress the key via the use of the -X flag.
Use --address to output the EVM address instead.""",
    )
    pubkey_parser.add_argument(
        "-X", "--compressed", action="store_true", help="output compressed pubkey"
    )
    pubkey_parser.add_argument(
        "--address", action="store_true", help="output checksummed EVM address"
    )
    add_common_arguments(pubkey_parser)
    add_input_arguments(pubkey_parser)
    add_output_arguments(pubkey_parser)

    mnemonic_parser = sub_parser.add_parser(
        "mnemonic",
        help="Generate (or convert) mnemonic phrases",
        formatter_class=RawDescriptionDefaultsHelpFormatter,
        description="""
Generate (or convert) mnemonic phrase.

This command with no further options will generate a new mnemonic seed phrase.

Examples:

    1. Generate a mnemonic (specify entropy strength in bits)

        $ evmhd mnemonic -S 256

    2. Generate a mnemonic from provided entropy

        $ head -c 16 /dev/urandom | evmhd mnemonic -1 --from-entropy

    3. Retrieve original entropy

        $ echo <mnemonic-phrase> | evmhd mnemonic --to-entropy

    4. Convert mnemonic to seed

        $ echo <mnemonic-phrase> | evmhd mnemonic --to-seed""",
    )
    mnemonic_parser.add_argument(
        "--strength",
        "-S",
        metavar="STRENGTH",
        type=int,
        default=128,
        choices=[128, 160, 192, 224, 256],
        help="entropy strength (in bits) for mnemonic generation",
    )
    mnemonic_mutually_exclusive_group = mnemonic_parser.add_mutually_exclusive_group()
    mnemonic_mutually_exclusive_group.add_argument(
        "--from-entropy",
        action="store_true",
        help="convert entropy (in_file) to mnemonic phrase",
    )
    mnemonic_mutually_exclusive_group.add_argument(
        "--to-entropy",
        action="store_true",
        help="convert mnemonic phrase (in_file) back to original entropy",
    )
    mnemonic_mutually_exclusive_group.add_argument(
        "--to-seed",
        action="store_true",
        help="convert mnemonic phrase (in_file) to seed per BIP39",
    )
    mnemonic_parser.add_argument(
        "--passphrase",
        "-p",
        action="store_true",
        help="prompt for a BIP39 passphrase (with --to-seed)",
    )
    add_common_arguments(mnemonic_parser)
    add_input_arguments(mnemonic_parser)
    add_output_arguments(mnemonic_parser)

    derive_parser = sub_parser.add_parser(
        "derive",
        help="Derive key at path",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        description="""
Derive the key at a BIP32 path, e.g. "m/44'/60'/0'/0/0", from a mnemonic phrase
(or seed, with --from-seed) and write a json description of the node.

The private key is only included with --private.""",
    )
    derive_parser.add_argument("path", nargs="?", help="derivation path")
    derive_parser.add_argument(
        "--private", action="store_true", help="include the private key in output"
    )
    add_key_source_arguments(derive_parser)
    add_common_arguments(derive_parser)
    add_input_arguments(derive_parser, include_input_format=False)
    add_output_arguments(derive_parser, include_output_format=False)

    sign_parser = sub_parser.add_parser(
        "sign",
        help="Sign a personal message",
        description="Sign a message (EIP-191 personal message) with the key at --path.",
    )
    sign_parser.add_argument("message", help="message to sign")
    sign_parser.add_argument("--path", action=ExplicitOption, help="derivation path")
    sign_parser.add_argument(
        "--compact",
        action="store_true",
        help="output compact signature (no 0x prefix, v in {0, 1})",
    )
    add_key_source_arguments(sign_parser)
    add_common_arguments(sign_parser)
    add_input_arguments(sign_parser, include_input_format=False)
    add_output_arguments(sign_parser, include_output_format=False)

    verify_parser = sub_parser.add_parser(
        "verify",
        help="Verify a personal message signature",
        description="Exit with 0 if signature over message recovers to address, else 1.",
    )
    verify_parser.add_argument("message", help="signed message")
    verify_parser.add_argument("signature", help="signature")
    verify_parser.add_argument("address", help="expected signer address")
    verify_parser.add_argument(
        "--compact", action="store_true", help="signature is in compact form"
    )
    add_common_arguments(verify_parser)

    sig_parser = sub_parser.add_parser(
        "sig",
        help="Convert signature format",
        description="Convert between standard (0x, v=27/28) and compact (v=0/1) signatures.",
    )
    sig_parser.add_argument("signature", help="signature to convert")
    sig_mutually_exclusive_group = sig_parser.add_mutually_exclusive_group(
        required=True
    )
    sig_mutually_exclusive_group.add_argument(
        "--to-compact", action="store_true", help="standard -> compact"
    )
    sig_mutually_exclusive_group.add_argument(
        "--from-compact", action="store_true", help="compact -> standard"
    )
    add_common_arguments(sig_parser)
    return parser


def read_text(file_) -> str:
    """
    Read text input and collapse whitespace, e.g. for mnemonic phrases
    """
    text = evmhd.read_bytes(file_, input_format="raw").decode("utf8")
    return " ".join(text.split())


def load_master(args) -> HDNode:
    if args.from_seed:
        return HDNode.from_seed(evmhd.read_bytes(args.in_file, input_format="hex"))
    mnemonic = read_text(args.in_file)
    passphrase = getpass(prompt="passphrase: ") if args.passphrase else ""
    return HDNode.from_mnemonic(mnemonic, passphrase=passphrase)


def run(args, config: Config, log):
    if args.subcommand == "key":
        key = evmhd.keys.generate_private_key()
        try:
            evmhd.write_bytes(bytes(key), args.out_file, output_format=config.output_format)
        finally:
            ecmath.zeroize(key)
    elif args.subcommand == "pubkey":
        data = evmhd.read_bytes(args.in_file, input_format=config.input_format)
        if len(data) == 32:
            with evmhd.keys.SigningKey(bytearray(data)) as key:
                pk = key.compressed_public_key if args.compressed else key.public_key
        elif len(data) == 33 or len(data) == 65:
            x, y = ecmath.decode_pubkey(data)
            pk = ecmath.pubkey(x, y, compressed=args.compressed)
        else:
            raise ValueError("data not recognized as private or public key")
        if args.address:
            evmhd.write_bytes(
                (public_key_to_address(pk) + os.linesep).encode("utf8"),
                args.out_file,
                output_format="raw",
            )
            return
        evmhd.write_bytes(pk, args.out_file, output_format=config.output_format)
    elif args.subcommand == "mnemonic":
        if args.from_entropy:
            entropy = evmhd.read_bytes(args.in_file, input_format=config.input_format)
            mnemonic = bip39.calculate_mnemonic_phrase(entropy)
            evmhd.write_bytes(
                (mnemonic + os.linesep).encode("utf8"),
                args.out_file,
                output_format="raw",
            )
        elif args.to_entropy or args.to_seed:
            mnemonic = read_text(args.in_file)
            if args.to_entropy:
                evmhd.write_bytes(
                    bip39.to_entropy(mnemonic),
                    args.out_file,
                    output_format=config.output_format,
                )
            else:
                passphrase = getpass(prompt="passphrase: ") if args.passphrase else ""
                evmhd.write_bytes(
                    bip39.to_seed(mnemonic, passphrase=passphrase),
                    args.out_file,
                    output_format=config.output_format,
                )
        else:
            mnemonic = bip39.generate_mnemonic_phrase(args.strength)
            evmhd.write_bytes(
                (mnemonic + os.linesep).encode("utf8"),
                args.out_file,
                output_format="raw",
            )
    elif args.subcommand == "derive":
        path = args.path or config.path
        with load_master(args) as master:
            with master.derive_path(path) as node:
                node_dict = {
                    "path": node.path,
                    "address": node.address,
                    "public_key": node.public_key.hex(),
                    "chain_code": node.chain_code.hex(),
                    "depth": node.depth,
                    "index": node.index,
                    "fingerprint": node.fingerprint.hex(),
                    "parent_fingerprint": node.parent_fingerprint.hex(),
                }
                if args.private:
                    node_dict["private_key"] = node.private_key_buffer.hex()
        args.out_file.write(json.dumps(node_dict, indent=2) + os.linesep)
    elif args.subcommand == "sign":
        compact = args.compact or config.signature_format == "compact"
        with load_master(args) as master:
            with Signer(master.derive_path(config.path)) as signer:
                log.info(f"signing with {signer.address} at {signer.path}")
                signature = signer.sign(args.message, compact=compact)
        args.out_file.write(signature + os.linesep)
    elif args.subcommand == "verify":
        valid = Reader(args.address).verify(
            args.message, args.signature, compact=args.compact
        )
        sys.stdout.write(("true" if valid else "false") + os.linesep)
        return 0 if valid else 1
    elif args.subcommand == "sig":
        if args.to_compact:
            sys.stdout.write(to_compact(args.signature) + os.linesep)
        else:
            sys.stdout.write(from_compact(args.signature) + os.linesep)
    return 0


def main():
    parser = setup_parser()
    args = parser.parse_args()

    config = Config(**vars(args))
    config.load_config(config_dir=args.config_dir)
    explicit_options = {
        option: value
        for option, value in vars(args).items()
        if getattr(args, option + "__explicit", False)
    }
    config.update(**explicit_options)
    log = evmhd.init_logging(config.log_level)

    if not args.subcommand:
        parser.print_help()
        return
    try:
        ret = run(args, config, log)
    except EvmHDError as err:
        log.error(err)
        sys.exit(1)
    sys.exit(ret)


if __name__ == "__main__":
    main()
