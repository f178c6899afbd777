from addinpack.app import main

main()
