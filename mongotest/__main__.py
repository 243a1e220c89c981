from mongotest.main import main

main()
