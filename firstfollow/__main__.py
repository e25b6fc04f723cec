from .report import console_main

console_main()
