#!/usr/bin/env python3
"""
henkan_cli.py - Command-line interface for kana-kanji conversion and dictionaries
かな漢字変換と辞書管理のコマンドラインインターフェース

================================================================================
USAGE / 使用方法
================================================================================

    # Convert a reading (N-best candidates)
    # 読みを変換（N-best候補）
    python henkan_cli.py convert きょうはいいてんき

    # Convert with a user split after the 3rd character
    # 3文字目の後で区切って変換
    python henkan_cli.py convert きょうは --split 3

    # Export / import the learning dictionary
    # 学習辞書のエクスポート／インポート
    python henkan_cli.py export -o learning_dictionary.txt
    python henkan_cli.py import learning_dictionary.txt

    # Delete learned entries for a reading
    # 読みの学習エントリを削除
    python henkan_cli.py delete きょう

    # Build the system dictionary and the connection table
    # システム辞書と連接表を生成
    python henkan_cli.py build-dict system_dictionary.txt
    python henkan_cli.py build-connection matrix.def

================================================================================
"""

import argparse
import sys
import os
import logging

# Add src directory to path if needed
src_dir = os.path.dirname(os.path.abspath(__file__))
if src_dir not in sys.path:
    sys.path.insert(0, src_dir)

from connection import convert_matrix_def
from dictionary import convert_text_dictionary
import util


def setup_logging(verbose=False):
    """Configure logging based on verbosity level."""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s %(levelname)-8s %(message)s',
        datefmt='%H:%M:%S'
    )


def _load(args):
    config, warnings = util.get_config_data(args.config_dir)
    if warnings:
        print(warnings, file=sys.stderr)
    if args.verbose:
        config["logging_level"] = "DEBUG"
    return config


def cmd_convert(args):
    """
    Convert a reading and print the candidates.
    読みを変換して候補を表示。
    """
    config = _load(args)
    if args.nbest is not None:
        config['n_best'] = args.nbest
    with util.open_processor(config, args.config_dir) as processor:
        candidates = processor.build_candidates(args.reading, args.split)

    if not candidates:
        print(f"No candidates for: {args.reading}")
        return 1
    for rank, candidate in enumerate(candidates, start=1):
        readings = '/'.join(w.reading for w in candidate.words)
        print(f"{rank}\t{candidate.surface}\t{readings}")
    return 0


def cmd_export(args):
    """
    Export the learning dictionary as tab-separated lines.
    学習辞書をタブ区切り行でエクスポート。
    """
    config = _load(args)
    with util.open_processor(config, args.config_dir) as processor:
        if args.prefix:
            keys = {reading for reading, _ in processor.list_learning(args.prefix)}
            lines = [line for line in processor.export_learning() if line.split('\t', 1)[0] in keys]
        else:
            lines = processor.export_learning()

    if args.output:
        try:
            with open(args.output, 'w', encoding='utf-8') as f:
                for line in lines:
                    f.write(line + '\n')
        except OSError as e:
            print(f"ERROR: Failed to write {args.output}: {e}")
            return 1
        print(f"Exported {len(lines):,} entries to {args.output}")
    else:
        for line in lines:
            print(line)
    return 0


def cmd_import(args):
    """
    Import exported lines into the learning dictionary.
    エクスポートされた行を学習辞書にインポート。
    """
    if not os.path.exists(args.file):
        print(f"ERROR: File not found: {args.file}")
        return 1
    try:
        with open(args.file, 'r', encoding='utf-8') as f:
            lines = [line.rstrip('\n') for line in f if line.strip()]
    except (OSError, UnicodeDecodeError) as e:
        print(f"ERROR: Failed to read {args.file}: {e}")
        return 1

    config = _load(args)
    with util.open_processor(config, args.config_dir) as processor:
        ok = processor.import_learning(lines)

    if not ok:
        print(f"ERROR: Failed to import {args.file}")
        return 1
    print(f"Imported {len(lines):,} lines from {args.file}")
    return 0


def cmd_delete(args):
    """
    Delete the learning entries of a reading.
    読みの学習エントリを削除。
    """
    config = _load(args)
    with util.open_processor(config, args.config_dir) as processor:
        ok = processor.delete_learning(args.reading)
    if not ok:
        print(f"ERROR: Failed to delete learning entries for {args.reading}")
        return 1
    print(f"Deleted learning entries for {args.reading}")
    return 0


def cmd_build_dict(args):
    """
    Build the system dictionary from its text form.
    テキスト形式からシステム辞書を生成。
    """
    output = args.output
    if output is None:
        config = _load(args)
        output = util.get_dictionary_paths(config, args.config_dir)['system_dictionary']

    success, output_path, entry_count = convert_text_dictionary(args.text, output)
    if not success:
        print(f"ERROR: Failed to build dictionary from {args.text}")
        return 1
    print(f"Dictionary written to {output_path} ({entry_count:,} entries)")
    return 0


def cmd_build_connection(args):
    """
    Build the binary connection table from a matrix.def file.
    matrix.defからバイナリ連接表を生成。
    """
    output = args.output
    if output is None:
        config = _load(args)
        output = util.get_dictionary_paths(config, args.config_dir)['connection_table']

    success, output_path, dim = convert_matrix_def(args.matrix, output)
    if not success:
        print(f"ERROR: Failed to build connection table from {args.matrix}")
        return 1
    print(f"Connection table written to {output_path} (dim={dim})")
    return 0


def cmd_stats(args):
    """
    Show dictionary statistics.
    辞書の統計を表示。
    """
    config = _load(args)
    with util.open_processor(config, args.config_dir) as processor:
        stats = processor.get_dictionary_stats()

    print(f"System readings:    {stats['system_readings']:,}")
    print(f"Learning readings:  {stats['learning_readings']:,}")
    print(f"Prediction keys:    {stats['prediction_keys']:,}")
    print(f"Connection dim:     {stats['connection_dim']}")
    print(f"Conversion enabled: {stats['conversion_enabled']}")
    return 0


def build_parser():
    parser = argparse.ArgumentParser(
        description="Kana-kanji conversion and dictionary maintenance CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  python henkan_cli.py convert きょうはいいてんき
  python henkan_cli.py convert きょうは --split 3 --nbest 5
  python henkan_cli.py export -o learning_dictionary.txt
  python henkan_cli.py import learning_dictionary.txt
  python henkan_cli.py build-dict system_dictionary.txt
  python henkan_cli.py build-connection matrix.def
"""
    )

    parser.add_argument('--version', action='version',
                        version=f'%(prog)s {util.get_version()}')
    parser.add_argument('-v', '--verbose', action='store_true',
                        help='Enable verbose output')
    parser.add_argument('-c', '--config-dir', default=None,
                        help='Directory holding config.json and dictionaries (default: ~/.config/kkhenkan)')

    subparsers = parser.add_subparsers(dest='command', help='Available commands')

    convert_parser = subparsers.add_parser('convert', help='Convert a reading')
    convert_parser.add_argument('reading', help='Hiragana reading to convert')
    convert_parser.add_argument('-s', '--split', type=int, default=None,
                                help='Split position (no word may cross it)')
    convert_parser.add_argument('-n', '--nbest', type=int, default=None,
                                help='Number of candidates (default: config n_best)')

    export_parser = subparsers.add_parser('export', help='Export the learning dictionary')
    export_parser.add_argument('-o', '--output', help='Output file (default: stdout)')
    export_parser.add_argument('-p', '--prefix', default='',
                               help='Only export readings starting with this prefix')

    import_parser = subparsers.add_parser('import', help='Import lines into the learning dictionary')
    import_parser.add_argument('file', help='File produced by export')

    delete_parser = subparsers.add_parser('delete', help='Delete learning entries of a reading')
    delete_parser.add_argument('reading', help='Reading to delete')

    build_dict_parser = subparsers.add_parser('build-dict', help='Build the system dictionary')
    build_dict_parser.add_argument('text', help='Text dictionary (reading<TAB>lid,rid,cost,surface...)')
    build_dict_parser.add_argument('-o', '--output', help='Output JSON path (default: configured path)')

    build_conn_parser = subparsers.add_parser('build-connection', help='Build the connection table')
    build_conn_parser.add_argument('matrix', help='MeCab matrix.def file')
    build_conn_parser.add_argument('-o', '--output', help='Output binary path (default: configured path)')

    subparsers.add_parser('stats', help='Show dictionary statistics')

    return parser


def main(argv=None):
    """Main entry point for CLI."""
    parser = build_parser()
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    setup_logging(args.verbose)

    handlers = {
        'convert': cmd_convert,
        'export': cmd_export,
        'import': cmd_import,
        'delete': cmd_delete,
        'build-dict': cmd_build_dict,
        'build-connection': cmd_build_connection,
        'stats': cmd_stats,
    }
    return handlers[args.command](args)


if __name__ == "__main__":
    sys.exit(main())
