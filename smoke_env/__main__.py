from smoke_env.cli import main

main()
