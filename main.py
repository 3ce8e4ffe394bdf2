from cli.app import cli


def main():
    """Entry point for the aws-inspect CLI. Delegates to cli.app:cli."""
    cli(obj={})


if __name__ == "__main__":
    main()
