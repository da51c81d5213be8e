from nvibe.app import main

main()
