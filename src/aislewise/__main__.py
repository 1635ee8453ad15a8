from aislewise.cli import main

main()
