from autodep.cli.main import main

main()
