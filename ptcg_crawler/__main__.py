from ptcg_crawler.apps.cli import main

if __name__ == "__main__":
    main()
