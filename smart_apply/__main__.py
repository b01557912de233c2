from smart_apply.cli.client import main

main()
