from dirguard.cli.show_dirs import main

if __name__ == "__main__":
    raise SystemExit(main())
