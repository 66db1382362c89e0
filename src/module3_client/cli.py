# file: src/module3_client/cli.py

"""
sms-client command line.

Encodes phone numbers to crock codes and back, and encrypts or decrypts
payloads in the PKI and ODK formats. Payloads are read from stdin (or a
file) and written to stdout; log records go to stderr.
"""

import argparse
import base64
import binascii
import logging
import sys
from typing import List, Optional

from ..module1_crock import CrockError, PhoneCodec, parse_shuffle
from ..module2_crypto import (
    CryptoError,
    OdkDecryptor,
    OdkEncryptor,
    PkiDecryptor,
    PkiEncryptor,
    read_private_key,
    read_public_key,
)

from .config import load_config, setup_logging
from .exceptions import ConfigError

logger = logging.getLogger(__name__)


def _stdin():
    return sys.stdin.buffer


def _stdout():
    return sys.stdout.buffer


def _phone_codec(args, config) -> PhoneCodec:
    if args.shuffle is not None:
        return PhoneCodec(shuffle=parse_shuffle(args.shuffle))
    return PhoneCodec.from_config(config)


def cmd_encrock(args, config) -> int:
    print(_phone_codec(args, config).encode(args.phone_number))
    return 0


def cmd_decrock(args, config) -> int:
    print(_phone_codec(args, config).decode(args.crock_code))
    return 0


def cmd_alphabet(args, config) -> int:
    print(_phone_codec(args, config).alphabet)
    return 0


def cmd_encrypt(args, config) -> int:
    """Encrypt stdin with a public key; write base64 ciphertext to stdout."""
    encryptor = PkiEncryptor(read_public_key(args.pubkey))
    ciphertext = encryptor.encrypt(_stdin().read())

    out = _stdout()
    out.write(base64.b64encode(ciphertext))
    out.flush()
    return 0


def cmd_decrypt(args, config) -> int:
    """Decrypt base64 ciphertext on stdin with a private key."""
    decryptor = PkiDecryptor(read_private_key(args.privkey))

    try:
        ciphertext = base64.b64decode(b"".join(_stdin().read().split()), validate=True)
    except (binascii.Error, ValueError) as e:
        raise CryptoError(f"Input is not base64: {e}") from e

    out = _stdout()
    out.write(decryptor.decrypt(ciphertext))
    out.flush()
    return 0


def cmd_odk_encrypt(args, config) -> int:
    """Encrypt one single-part submission; the wrapped key goes to --key-out."""
    encryptor = OdkEncryptor(read_public_key(args.pubkey), args.instance_id)

    out = _stdout()
    if args.infile == "-":
        encryptor.encrypt_stream(_stdin(), out)
    else:
        with open(args.infile, 'rb') as f:
            encryptor.encrypt_stream(f, out)
    out.flush()

    with open(args.key_out, 'w') as f:
        f.write(encryptor.base64_key + "\n")

    logger.info("wrote wrapped key to %s", args.key_out)
    return 0


def cmd_odk_decrypt(args, config) -> int:
    """Decrypt one single-part submission to stdout."""
    decryptor = OdkDecryptor.from_base64_key(
        read_private_key(args.privkey), args.b64key, args.instance_id
    )

    out = _stdout()
    if args.infile == "-":
        decryptor.decrypt_stream(_stdin(), out)
    else:
        with open(args.infile, 'rb') as f:
            decryptor.decrypt_stream(f, out)
    out.flush()
    return 0


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser with one sub-command per operation."""
    parser = argparse.ArgumentParser(
        prog='sms-client',
        description='Crock codes and payload encryption for SMS and form submissions',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  sms-client encrock 782334124
  sms-client decrock DBR-YT6
  echo 'hello' | sms-client encrypt public.der > message.b64
  sms-client decrypt private.der < message.b64
  sms-client odk-decrypt private.der "$B64KEY" uuid:1234 submission.xml.enc
        """
    )

    parser.add_argument(
        '--config',
        type=str,
        default=None,
        help='Path to configuration YAML file (default: built-in default_config.yaml)'
    )

    parser.add_argument(
        '--verbose', '-v',
        action='store_true',
        help='Enable debug logging'
    )

    sub = parser.add_subparsers(dest='command', metavar='COMMAND', required=True)

    shuffle_help = 'Alphabet shuffle key: 32 comma-separated integers'

    p = sub.add_parser('encrock', help='Encode a 9-digit phone number to a crock code')
    p.add_argument('--shuffle', default=None, help=shuffle_help)
    p.add_argument('phone_number', metavar='PHONENUMBER')
    p.set_defaults(func=cmd_encrock)

    p = sub.add_parser('decrock', help='Decode a crock code to a phone number')
    p.add_argument('--shuffle', default=None, help=shuffle_help)
    p.add_argument('crock_code', metavar='CROCKCODE')
    p.set_defaults(func=cmd_decrock)

    p = sub.add_parser('alphabet', help='Print the shuffled crock code alphabet')
    p.add_argument('--shuffle', default=None, help=shuffle_help)
    p.set_defaults(func=cmd_alphabet)

    p = sub.add_parser('encrypt', help='Encrypt stdin to base64 with a public key')
    p.add_argument('pubkey', metavar='PUBKEY', help='Public key file (DER, base64 DER or PEM)')
    p.set_defaults(func=cmd_encrypt)

    p = sub.add_parser('decrypt', help='Decrypt base64 on stdin with a private key')
    p.add_argument('privkey', metavar='PRIVKEY', help='Private key file (DER, base64 DER or PEM)')
    p.set_defaults(func=cmd_decrypt)

    p = sub.add_parser('odk-encrypt', help='Encrypt a submission in ODK format')
    p.add_argument('--key-out', required=True, metavar='FILE',
                   help='File to write the base64 wrapped key to')
    p.add_argument('pubkey', metavar='PUBKEY')
    p.add_argument('instance_id', metavar='INSTANCE')
    p.add_argument('infile', metavar='INFILE', nargs='?', default='-',
                   help="Plaintext file, '-' for stdin (default)")
    p.set_defaults(func=cmd_odk_encrypt)

    p = sub.add_parser('odk-decrypt', help='Decrypt an ODK-format submission')
    p.add_argument('privkey', metavar='PRIVKEY')
    p.add_argument('b64key', metavar='B64SYMKEY')
    p.add_argument('instance_id', metavar='INSTANCE')
    p.add_argument('infile', metavar='INFILE', nargs='?', default='-',
                   help="Ciphertext file, '-' for stdin (default)")
    p.set_defaults(func=cmd_odk_decrypt)

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point; returns the process exit status."""
    args = build_parser().parse_args(argv)

    try:
        config = load_config(args.config)
        setup_logging(verbose=args.verbose, level=config['logging'].get('level', 'WARNING'))
        logger.debug("running command: %s", args.command)
        return args.func(args, config)

    except (CrockError, CryptoError, ConfigError, OSError) as e:
        logger.debug("command %s failed", args.command, exc_info=True)
        print(f"sms-client: {e}", file=sys.stderr)
        return 1
