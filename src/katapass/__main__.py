from katapass.cli import main

main()
