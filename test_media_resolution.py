import argparse

import requests

from test_e2e_helpers import (
    add_server_args,
    parse_ids,
    print_response,
    start_server,
    stop_server,
    wait_for_server,
)


DEFAULT_IDS = ["hero-home", "hero/reviews-hero.jpg", "hero-video", "nonexistent/id"]


def main() -> None:
    parser = argparse.ArgumentParser(
        description="Resolve and render logical media ids against a running media API."
    )
    add_server_args(parser)
    parser.add_argument(
        "--id",
        dest="ids",
        action="append",
        help="Logical asset id (repeatable or comma-separated)",
    )
    parser.add_argument("--defaults", action="store_true", help="Use the built-in sample ids")
    parser.add_argument("--width", type=int, help="Requested width")
    parser.add_argument("--area", help="Site area preset (hero, team, gallery, ...)")
    parser.add_argument("--render", action="store_true", help="Also run the render retry flow")
    parser.add_argument("--folders", action="store_true", help="Print the CDN folder tree")
    args = parser.parse_args()

    ids = DEFAULT_IDS if args.defaults else parse_ids(args.ids)

    server_process = None
    if not args.no_server:
        server_process = start_server(args)
    else:
        wait_for_server(args.api, args.server_timeout)

    params = {"responsive": "true"}
    if args.width:
        params["width"] = args.width
    if args.area:
        params["area"] = args.area

    try:
        for logical_id in ids:
            response = requests.get(
                f"{args.api}/api/v1/media/resolve/{logical_id}", params=params, timeout=30
            )
            print_response(f"resolve {logical_id}", response)
            if args.render:
                response = requests.get(
                    f"{args.api}/api/v1/media/render/{logical_id}", params=params, timeout=60
                )
                print_response(f"render {logical_id}", response)
        if args.folders:
            response = requests.get(f"{args.api}/api/v1/media/folders", timeout=60)
            print_response("folders", response)
    finally:
        stop_server(server_process)


if __name__ == "__main__":
    main()
