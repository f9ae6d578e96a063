import sys


def main() -> None:
    if len(sys.argv) > 1:
        from precompress.cli import main as cli_main

        raise SystemExit(cli_main(sys.argv[1:]))
    from precompress.app import main as app_main

    app_main()


if __name__ == "__main__":
    main()
