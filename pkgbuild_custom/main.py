#!/usr/bin/env python3
"""
Main Entry Point for the Hyprland PKGBUILD customizer

Reads original-arch-pkgbuild/PKGBUILD and writes custom-pkgbuild/ with the
patched PKGBUILD. No arguments are required.
"""

import argparse
import logging
import sys
from pathlib import Path

from pkgbuild_custom.common.config_loader import ConfigLoader, EVALUATOR_CHOICES
from pkgbuild_custom.common.errors import PkgbuildCustomError
from pkgbuild_custom.common.logging_utils import setup_logging
from pkgbuild_custom.common.shell_executor import ShellExecutor
from pkgbuild_custom.descriptor import create_evaluator
from pkgbuild_custom.orchestrator.descriptor_assembler import DescriptorAssembler
from pkgbuild_custom.scm.upstream_client import UpstreamClient

logger = logging.getLogger('pkgbuild_custom')


def build_parser():
    parser = argparse.ArgumentParser(
        prog='pkgbuild-custom',
        description='Generate the hyprland-custom PKGBUILD from the upstream Arch recipe.'
    )
    parser.add_argument('--debug', action='store_true', default=None,
                        help='verbose progress output')
    parser.add_argument('--evaluator', choices=EVALUATOR_CHOICES, default=None,
                        help='how the upstream PKGBUILD is evaluated (default: auto)')
    parser.add_argument('--no-verify', dest='verify_output', action='store_false', default=None,
                        help='do not re-evaluate the generated PKGBUILD')
    parser.add_argument('--sync-upstream', action='store_true',
                        help='download the upstream PKGBUILD into the source folder first')
    parser.add_argument('--config', metavar='PATH', default=None,
                        help='YAML file with runtime settings')
    return parser


def run(config):
    """Run one customization with a resolved configuration; returns the AssemblyResult"""
    if config.get('sync_upstream'):
        client = UpstreamClient(config['upstream_base_url'], timeout=config['upstream_timeout'])
        client.sync_descriptor(
            Path(config['base_dir']) / config['original_folder'],
            config['upstream_package'],
            config['upstream_ref'],
            config['descriptor_name'],
        )

    evaluator = create_evaluator(
        config['evaluator'],
        shell_executor=ShellExecutor(debug_mode=config['debug_mode']),
        timeout=config['bash_timeout'],
    )
    return DescriptorAssembler.from_config(config, evaluator=evaluator).run()


def main(argv=None, base_dir=None):
    """Command line entry point; returns the process exit code"""
    args = build_parser().parse_args(argv)

    # Errors raised while loading the configuration still need a handler
    setup_logging(debug_mode=bool(args.debug))

    try:
        config = ConfigLoader.load(
            config_path=args.config,
            cli_overrides={
                'debug_mode': args.debug,
                'evaluator': args.evaluator,
                'verify_output': args.verify_output,
            },
            base_dir=base_dir,
        )
        setup_logging(debug_mode=config['debug_mode'], log_file=config['log_file'])
        config['sync_upstream'] = args.sync_upstream
        run(config)
    except PkgbuildCustomError as e:
        logger.error(f"{e.stage} stage failed: {e}")
        return e.exit_code

    return 0


if __name__ == "__main__":
    sys.exit(main())
