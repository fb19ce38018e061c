from ringmap.bootstrap.cli import main

main()
