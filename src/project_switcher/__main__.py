from project_switcher.main import main

if __name__ == "__main__":
    raise SystemExit(main())
