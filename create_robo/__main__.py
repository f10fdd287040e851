from create_robo.cli import main

main()
