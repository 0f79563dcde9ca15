from parley.core.helpers.utils import scan, setup_logging
from parleyctl.bootstrap.deps import get_cli


@scan("parleyctl.bootstrap.commands")
def main():
    setup_logging("WARNING")
    cli = get_cli()

    if cli.interactive:
        cli.cmdloop()
    else:
        cli.onecmd(cli.args.namespace)

    raise SystemExit(cli.exit_code)


if __name__ == "__main__":
    main()
