"""Run the helm-images command line tool with `python -m helm_images`."""

from helm_images.tool.helm_images import main

if __name__ == "__main__":
    main()
