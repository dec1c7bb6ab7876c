from timescales.run import main

main()
