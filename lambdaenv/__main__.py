from lambdaenv.main import main


main()
