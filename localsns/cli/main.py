def main():
    from .localsns import localsns

    localsns()


if __name__ == "__main__":
    main()
