import sys
import os

# Add the current directory to sys.path to ensure we can import the module
sys.path.append(os.getcwd())

from agents.category_analysis_agent.graph import get_category_analysis_graph


def main():
    print("Generating graph visualization...")
    graph = get_category_analysis_graph()

    try:
        # draw_mermaid_png renders through the mermaid.ink API
        png_bytes = graph.get_graph().draw_mermaid_png()

        output_file = "category_analysis_graph.png"
        with open(output_file, "wb") as f:
            f.write(png_bytes)

        print(f"Success! Graph visualization saved to {output_file}")

    except Exception as e:
        print(f"Error generating PNG: {e}")
        print("\nFalling back to Mermaid syntax. You can paste this into https://mermaid.live/ :\n")
        print(graph.get_graph().draw_mermaid())


if __name__ == "__main__":
    main()
