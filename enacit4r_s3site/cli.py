from typing import List, Optional
from . import __version__
from .models.config import SiteConfig, SiteConfigError
from .services.s3 import S3Error
from .services.site import generate_site
import argparse
import asyncio
import locale
import logging
import os


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="enacit4r-s3site",
        description="Generate a static website listing the content of an S3 bucket")
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument("--bucket", default=os.environ.get("AWS_BUCKET", ""), help="AWS Bucket")
    parser.add_argument("--region", default=os.environ.get("AWS_REGION", ""), help="AWS Region")
    parser.add_argument("--access-key-id", default=os.environ.get("AWS_ACCESS_KEY_ID", ""), help="AWS Access Key ID")
    parser.add_argument("--secret-access-key", default=os.environ.get("AWS_SECRET_ACCESS_KEY", ""), help="AWS Secret Access Key")
    parser.add_argument("--endpoint", default=None, help="S3 Endpoint (if using a custom endpoint)")
    parser.add_argument("--force-path-style", "--forcePathStyle", dest="force_path_style", action="store_true",
                        help="Force path style")
    parser.add_argument("--footer", default="", help="Footer text")
    parser.add_argument("-o", "--output", default=".", help="Output path")
    parser.add_argument("-v", "--verbose", action="store_true", help="Verbose output")
    parser.add_argument("--include-hidden-files", action="store_true", help="Include hidden files")
    parser.add_argument("--include-sitemap", action="store_true", help="Include sitemap")
    parser.add_argument("--domain", default="", help="Domain name that this site will be hosted on")
    parser.add_argument("--root-path", default="/",
                        help="Path to the root file (used if will be hosted in a subdirectory of a website)")
    return parser


def make_config(args: argparse.Namespace) -> SiteConfig:
    return SiteConfig(bucket=args.bucket,
                      region=args.region,
                      access_key_id=args.access_key_id,
                      secret_access_key=args.secret_access_key,
                      session_token=os.environ.get("AWS_SESSION_TOKEN"),
                      endpoint=args.endpoint,
                      force_path_style=args.force_path_style,
                      footer=args.footer,
                      output=args.output,
                      verbose=args.verbose,
                      include_hidden_files=args.include_hidden_files,
                      include_sitemap=args.include_sitemap,
                      domain=args.domain,
                      root_path=args.root_path)


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format="%(levelname)s %(message)s")
    logging.getLogger("botocore").setLevel(logging.WARNING)
    logging.debug("Verbose output enabled.")
    try:
        locale.setlocale(locale.LC_COLLATE, "")
    except locale.Error as e:
        logging.warning(f"Could not use the environment collation, names sorted by default: {e}")
    config = make_config(args)
    if config.endpoint and not args.force_path_style:
        logging.debug("Forcing Path Style since endpoint is specified.")
    try:
        config.check()
        asyncio.run(generate_site(config))
    except (SiteConfigError, S3Error) as e:
        logging.error(e)
        return 1
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
