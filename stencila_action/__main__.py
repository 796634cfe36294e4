from stencila_action.cli.app import main

main()
