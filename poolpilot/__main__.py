from poolpilot.cli import main

main()
