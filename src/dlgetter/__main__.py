from .CLI import get

if __name__ == "__main__":
    get()
