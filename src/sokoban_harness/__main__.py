from sokoban_harness import main

main()
