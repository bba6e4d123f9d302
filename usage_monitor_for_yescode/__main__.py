from usage_monitor_for_yescode.tray import main

if __name__ == '__main__':
    main()
